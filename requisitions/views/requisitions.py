"""
Requisition endpoints.

Thin HTTP layer over ``requisitions.services``: request bodies are
validated by the serializers in ``requisitions.serializers.requisition``
before any service call, domain errors propagate to the project
exception handler, and responses are plain camelCase dicts wrapped in
``{'ok': True, ...}``.
"""
from __future__ import annotations

import math

from django.conf import settings
from django.core.cache import cache
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from requisitions import services
from requisitions.permissions import CanApprove, CanFulfill, CanRequest
from requisitions.serializers.requisition import (
    RequisitionApproveSerializer,
    RequisitionCancelSerializer,
    RequisitionCreateSerializer,
    RequisitionFulfillSerializer,
    RequisitionListQuerySerializer,
    RequisitionRejectSerializer,
    RequisitionUpdateSerializer,
)
from requisitions.services.notify import STATS_CACHE_KEY


def _user_name(user):
    return user.display_name if user else None


def _iso(value):
    return value.isoformat() if value else None


def _serialize_item(line, *, detail: bool = False) -> dict:
    data = {
        'id': str(line.id),
        'itemId': str(line.item_id),
        'sku': line.item.sku,
        'itemName': line.item.name,
        'unitOfMeasure': line.item.unit_of_measure,
        'quantityRequested': line.quantity_requested,
        'quantityApproved': line.quantity_approved,
        'quantityIssued': line.quantity_issued,
        'isFulfilled': line.is_fulfilled,
        'substitutionApproved': line.substitution_approved,
        'notes': line.notes,
    }
    if detail:
        sub = line.substitute_item
        data['substituteItem'] = (
            {'id': str(sub.id), 'sku': sub.sku, 'name': sub.name} if sub else None
        )
        data['availableStock'] = getattr(line, 'available_stock', 0)
        data['stockLocations'] = [
            {
                'stockId': str(s.id),
                'locationId': str(s.location_id),
                'locationCode': s.location.code,
                'locationName': s.location.name,
                'lotNumber': s.lot_number,
                'serialNumber': s.serial_number,
                'quantityAvailable': s.quantity_available,
                'expirationDate': _iso(s.expiration_date),
            }
            for s in getattr(line, 'stock_locations', [])
        ]
    return data


def _serialize_requisition(req, *, detail: bool = False) -> dict:
    items = list(req.items.all())
    return {
        'id': str(req.id),
        'reqNumber': req.req_number,
        'departmentId': req.department_id,
        'departmentName': req.department.name,
        'status': req.status,
        'priority': req.priority,
        'requestedBy': req.requested_by_id,
        'requestedByName': _user_name(req.requested_by),
        'requestedAt': _iso(req.requested_at),
        'neededByDate': _iso(req.needed_by),
        'justification': req.justification,
        'notes': req.notes,
        'approvedBy': req.approved_by_id,
        'approvedByName': _user_name(req.approved_by),
        'approvedAt': _iso(req.approved_at),
        'approvalNotes': req.approval_notes,
        'fulfilledBy': req.fulfilled_by_id,
        'fulfilledByName': _user_name(req.fulfilled_by),
        'fulfilledAt': _iso(req.fulfilled_at),
        'updatedAt': _iso(req.updated_at),
        'itemCount': getattr(req, 'item_count', len(items)),
        'items': [_serialize_item(line, detail=detail) for line in items],
    }


def _serialize_transaction(trx) -> dict:
    return {
        'id': str(trx.id),
        'transactionNumber': trx.transaction_number,
        'transactionType': trx.transaction_type,
        'itemId': str(trx.item_id),
        'sku': trx.item.sku,
        'fromLocationId': str(trx.from_location_id) if trx.from_location_id else None,
        'quantity': trx.quantity,
        'unitCost': str(trx.unit_cost),
        'totalCost': str(trx.total_cost),
        'lotNumber': trx.lot_number,
        'serialNumber': trx.serial_number,
        'referenceType': trx.reference_type,
        'referenceId': str(trx.reference_id) if trx.reference_id else None,
        'referenceNumber': trx.reference_number,
        'performedBy': trx.performed_by_id,
        'notes': trx.notes,
        'createdAt': _iso(trx.created_at),
    }


def _require(permission, request):
    if not permission().has_permission(request, None):
        raise PermissionDenied()


def _detail_response(req_id, http_status=status.HTTP_200_OK):
    req = services.get_requisition_by_id(req_id)
    return Response({'ok': True, 'data': _serialize_requisition(req, detail=True)}, status=http_status)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def requisitions(request):
    """``GET`` lists requisitions with filters; ``POST`` creates a draft."""
    if request.method == 'GET':
        q = RequisitionListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        page = q.validated_data.get('page', 1)
        page_size = min(q.validated_data.get('pageSize', 20), settings.REQUISITION_MAX_PAGE_SIZE)
        rows, total = services.list_requisitions(
            status=q.validated_data.get('status'),
            department_id=q.validated_data.get('departmentId'),
            priority=q.validated_data.get('priority'),
            from_date=q.validated_data.get('fromDate'),
            to_date=q.validated_data.get('toDate'),
            search=q.validated_data.get('search'),
            page=page,
            page_size=page_size,
        )
        return Response({
            'ok': True,
            'data': [_serialize_requisition(r) for r in rows],
            'pagination': {
                'page': page,
                'pageSize': page_size,
                'total': total,
                'totalPages': math.ceil(total / page_size) if total else 0,
            },
        })

    _require(CanRequest, request)
    s = RequisitionCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    req = services.create_requisition(
        department_id=d['departmentId'],
        requested_by=request.user,
        priority=d['priority'],
        needed_by=d.get('neededByDate'),
        justification=d.get('justification', ''),
        notes=d.get('notes', ''),
        items=[
            {'item_id': line['itemId'], 'quantity_requested': line['quantityRequested'], 'notes': line.get('notes', '')}
            for line in d['items']
        ],
    )
    return _detail_response(req.id, status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def requisition_detail(request, pk):
    if request.method == 'GET':
        return _detail_response(pk)

    _require(CanRequest, request)
    s = RequisitionUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    fields = {}
    for src, dst in (('priority', 'priority'), ('neededByDate', 'needed_by'),
                     ('justification', 'justification'), ('notes', 'notes')):
        if src in d:
            fields[dst] = d[src]
    if 'items' in d:
        fields['items'] = [
            {'item_id': line['itemId'], 'quantity_requested': line['quantityRequested'], 'notes': line.get('notes', '')}
            for line in d['items']
        ]
    services.update_requisition(pk, user=request.user, **fields)
    return _detail_response(pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanRequest])
def requisition_submit(request, pk):
    services.submit_requisition(pk, user=request.user)
    return _detail_response(pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanApprove])
def requisition_approve(request, pk):
    s = RequisitionApproveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    services.approve_requisition(
        pk,
        approved_by=request.user,
        approval_notes=d.get('approvalNotes', ''),
        items=[
            {
                'requisition_item_id': line['requisitionItemId'],
                'quantity_approved': line['quantityApproved'],
                'substitute_item_id': line.get('substituteItemId'),
                'substitution_approved': line.get('substitutionApproved', False),
            }
            for line in d.get('items') or []
        ],
    )
    return _detail_response(pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanApprove])
def requisition_reject(request, pk):
    s = RequisitionRejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    services.reject_requisition(pk, approved_by=request.user, reason=s.validated_data['reason'])
    return _detail_response(pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanFulfill])
def requisition_fulfill(request, pk):
    s = RequisitionFulfillSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    services.fulfill_requisition(
        pk,
        fulfilled_by=request.user,
        notes=d.get('notes', ''),
        instructions=[
            {
                'requisition_item_id': line['requisitionItemId'],
                'quantity_issued': line['quantityIssued'],
                'location_id': line['fromLocationId'],
                'lot_number': line.get('lotNumber'),
                'serial_number': line.get('serialNumber'),
            }
            for line in d['items']
        ],
    )
    return _detail_response(pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanRequest])
def requisition_cancel(request, pk):
    s = RequisitionCancelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    services.cancel_requisition(pk, s.validated_data.get('reason') or None, user=request.user)
    return _detail_response(pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def requisition_transactions(request, pk):
    rows = services.list_requisition_transactions(pk)
    return Response({'ok': True, 'data': [_serialize_transaction(t) for t in rows]})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def requisition_stats(request):
    data = cache.get(STATS_CACHE_KEY)
    if data is None:
        data = services.get_requisition_stats()
        cache.set(STATS_CACHE_KEY, data, settings.REQUISITION_STATS_CACHE_SECONDS)
    return Response({'ok': True, 'data': data})
