#!/usr/bin/env python
"""
Command line entry point for the hospital supply service.

Sets ``hospital_supply.settings`` as the default settings module, then
hands off to Django's management utility (``migrate``,
``seed_supply_data``, ``refresh_requisition_stats``, ``runserver``).
"""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hospital_supply.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Is it installed and available on your "
            "PYTHONPATH, and is the virtual environment active?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
