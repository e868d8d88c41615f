"""Requisition lifecycle and stock fulfillment app.

This package contains the models, services, serializers, views and
route registrations for department supply requisitions, from draft
through approval to stock issuance.
"""
