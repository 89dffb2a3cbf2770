"""
Production lifecycle: start (consume BOM), advance stage, complete, cancel

Every function expects to run inside transaction.atomic(). The state changes
re-read the production with select_for_update and return that locked copy.
"""
import logging

from django.utils import timezone
from rest_framework import serializers

from iproduction.catalog.utils import (
    bom_requirements, find_shortages, change_product_stock, change_raw_material_stock
)
from .models import Production, ProductionStage, ProductionMaterial, StageTransition

logger = logging.getLogger(__name__)


def open_stage(production, stage, notes=''):
    production.stage = stage
    production.save(update_fields=['stage', 'updated_at'])
    return StageTransition.objects.create(
        production=production, stage=stage, status='in_progress', started_at=timezone.now(), notes=notes
    )


def close_open_transition(production, notes=''):
    transition = production.transitions.filter(status='in_progress').order_by('-started_at', '-id').first()
    if transition is not None:
        transition.status = 'completed'
        transition.completed_at = timezone.now()
        if notes:
            transition.notes = f"{transition.notes}\n{notes}".strip()
        transition.save(update_fields=['status', 'completed_at', 'notes'])
    return transition


def start_production(production):
    """Consume the product's BOM for the planned quantity and open the first stage"""
    requirements = bom_requirements(production.product, production.quantity)
    shortages = find_shortages(requirements)
    if shortages:
        names = ', '.join(s['name'] for s in shortages)
        raise serializers.ValidationError({
            'raw_materials': f"Insufficient stock for: {names}",
            'shortages': shortages,
        })

    for material, required in sorted(requirements.items(), key=lambda pair: pair[0].pk):
        change_raw_material_stock(material.pk, -required)
        ProductionMaterial.objects.create(production=production, raw_material=material, quantity=required)

    stage = production.stage
    if stage is None:
        stage = ProductionStage.objects.filter(tenant_id=production.tenant_id).order_by('order').first()
    if stage is not None:
        open_stage(production, stage)
    logger.info(f"Started production {production.reference_no}: {production.quantity} x {production.product.name}")
    return production


def lock_production(production):
    """Re-read the production under a row lock so concurrent state changes serialize"""
    return Production.objects.select_for_update().get(pk=production.pk)


def _require_running(production):
    if production.status != 'running':
        raise serializers.ValidationError({'status': f"Production is {production.status}, not running."})


def advance_production(production, notes=''):
    """Close the current stage and open the next one by order"""
    production = lock_production(production)
    _require_running(production)
    stages = ProductionStage.objects.filter(tenant_id=production.tenant_id)
    if production.stage is None:
        next_stage = stages.order_by('order').first()
    else:
        next_stage = stages.filter(order__gt=production.stage.order).order_by('order').first()
    if next_stage is None:
        raise serializers.ValidationError({'stage': 'Production is already at the last stage.'})

    close_open_transition(production, notes)
    open_stage(production, next_stage)
    logger.info(f"Production {production.reference_no} advanced to {next_stage.name}")
    return production


def complete_production(production, completed_qty=None, end_date=None):
    """Finish the run and add the completed quantity to product stock"""
    production = lock_production(production)
    _require_running(production)
    if completed_qty is None:
        completed_qty = production.quantity
    if completed_qty < 0:
        raise serializers.ValidationError({'completed_qty': 'Completed quantity cannot be negative.'})

    close_open_transition(production)
    production.completed_qty = completed_qty
    production.status = 'completed'
    production.end_date = end_date or timezone.now().date()
    production.save(update_fields=['completed_qty', 'status', 'end_date', 'updated_at'])
    if completed_qty:
        change_product_stock(production.product_id, completed_qty)
    logger.info(f"Production {production.reference_no} completed: {completed_qty}/{production.quantity}")
    return production


def cancel_production(production, reason=''):
    """Cancel a running production and return its consumed materials"""
    production = lock_production(production)
    _require_running(production)
    return_materials(production)
    close_open_transition(production, f"Cancelled: {reason}" if reason else 'Cancelled')
    production.status = 'cancelled'
    production.end_date = timezone.now().date()
    production.save(update_fields=['status', 'end_date', 'updated_at'])
    logger.info(f"Production {production.reference_no} cancelled")
    return production


def return_materials(production):
    """Put consumed materials back into stock; the rows stay as the record of what was consumed"""
    for material in production.materials.all():
        change_raw_material_stock(material.raw_material_id, material.quantity)


def inspection_outcome(results):
    """(status, defect_count) for QC results: failed when any parameter did not pass"""
    defects = sum(1 for result in results.values() if result.get('passed') is not True)
    return ('failed' if defects else 'passed'), defects
