"""
Token authentication for the supply API.

A thin subclass of Django REST framework's ``TokenAuthentication`` kept
in its own module so settings can reference a stable import path
without pulling in any views.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword."""

    keyword = 'Token'
