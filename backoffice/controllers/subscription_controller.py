from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from backoffice.repositories.sqlalchemy_repository import get_repository
from backoffice.services import billing_context
from backoffice.services.errors import NotFoundError
from backoffice.services.payload_formatters import format_subscription
from backoffice.services.payload_parsers import require_fields, parse_amount, parse_date
from backoffice.services.subscription_service import (
    create_subscription, change_plan, update_subscription_status
)

bp_subs = Blueprint('subscriptions', __name__, url_prefix='/api/subscriptions')


def _custom_price(data):
    # empty or zero custom price falls back to the plan price
    if not data.get("customPrice"):
        return None
    return parse_amount(data["customPrice"], "customPrice")


def _trial_days():
    return current_app.config.get("DEFAULT_TRIAL_DAYS", 7)


@bp_subs.post('/')
@jwt_required()
def post_subscription():
    data = request.get_json(silent=True) or {}
    require_fields(data, "customerId", "planId")
    repo = get_repository()
    sub_id = create_subscription(
        repo,
        customer_id=data["customerId"],
        plan_id=data["planId"],
        today=billing_context.today(),
        user_id=get_jwt_identity(),
        billing_day=data.get("billingDay"),
        custom_price=_custom_price(data),
        overflow=billing_context.monthly_overflow(),
        default_trial_days=_trial_days(),
    )
    return jsonify(format_subscription(repo.get_subscription(sub_id))), 201


@bp_subs.get('/<string:subscription_id>')
@jwt_required()
def get_subscription(subscription_id):
    sub = get_repository().get_subscription(subscription_id)
    if sub is None:
        raise NotFoundError("Subscription not found", details={"subscriptionId": subscription_id})
    return jsonify(format_subscription(sub)), 200


@bp_subs.post('/<string:subscription_id>/status')
@jwt_required()
def post_status(subscription_id):
    data = request.get_json(silent=True) or {}
    require_fields(data, "newStatus")
    update_subscription_status(
        get_repository(),
        subscription_id,
        data["newStatus"],
        user_id=get_jwt_identity(),
        new_next_billing_date=parse_date(data.get("newNextBillingDate"), "newNextBillingDate"),
    )
    current_app.logger.info(f"Subscription {subscription_id} set to {data['newStatus']}")
    return jsonify({"success": True}), 200


@bp_subs.post('/<string:subscription_id>/plan')
@jwt_required()
def post_plan(subscription_id):
    data = request.get_json(silent=True) or {}
    require_fields(data, "planId")
    repo = get_repository()
    change_plan(
        repo,
        subscription_id,
        data["planId"],
        today=billing_context.today(),
        user_id=get_jwt_identity(),
        billing_day=data.get("billingDay"),
        custom_price=_custom_price(data),
        overflow=billing_context.monthly_overflow(),
        default_trial_days=_trial_days(),
    )
    return jsonify(format_subscription(repo.get_subscription(subscription_id))), 200
