from backoffice.models.activityLog import ActivityAction
from backoffice.models.plan import BillingCycle
from backoffice.models.subscription import SubscriptionStatus
from backoffice.repositories.billing_repository import BillingBatch
from backoffice.services.billing_cycle import ROLLOVER, initial_next_billing_date, normalize_billing_day
from backoffice.services.errors import InvalidArgumentError, NotFoundError
from backoffice.services.state_machine import OPERATOR_STATUSES, check_subscription_transition


def _get_plan_or_404(repository, plan_id):
    plan = repository.get_plan(plan_id)
    if plan is None:
        raise NotFoundError("Plan not found", details={"planId": plan_id})
    return plan


def _get_subscription_or_404(repository, subscription_id):
    sub = repository.get_subscription(subscription_id)
    if sub is None:
        raise NotFoundError("Subscription not found", details={"subscriptionId": subscription_id})
    return sub


def create_subscription(repository, customer_id, plan_id, today, user_id,
                        billing_day=None, custom_price=None, overflow=ROLLOVER, default_trial_days=7):
    if repository.get_customer(customer_id) is None:
        raise NotFoundError("Customer not found", details={"customerId": customer_id})
    plan = _get_plan_or_404(repository, plan_id)

    day = normalize_billing_day(plan.billing_cycle, billing_day)
    next_date = initial_next_billing_date(
        today, plan.billing_cycle, day,
        trial_days=plan.trial_days or default_trial_days, overflow=overflow,
    )
    status = SubscriptionStatus.TRIAL if plan.billing_cycle == BillingCycle.TRIAL else SubscriptionStatus.ACTIVE

    batch = BillingBatch()
    sub_id = batch.add_subscription(
        customer_id=customer_id,
        plan_id=plan.id,
        custom_price=custom_price,
        billing_day=day,
        status=status,
        next_billing_date=next_date,
    )
    batch.log_activity(ActivityAction.CREATE_SUBSCRIPTION,
                       {"subscriptionId": sub_id, "customerId": customer_id, "planId": plan.id},
                       user_id=user_id)
    repository.commit_batch(batch)
    return sub_id


def change_plan(repository, subscription_id, plan_id, today, user_id,
                billing_day=None, custom_price=None, overflow=ROLLOVER, default_trial_days=7):
    """
    Move a subscription to another plan. The next billing date is recomputed
    from today only when the plan actually changes; no proration is applied.
    """
    sub = _get_subscription_or_404(repository, subscription_id)
    plan = _get_plan_or_404(repository, plan_id)

    values = {
        "plan_id": plan.id,
        "billing_day": normalize_billing_day(plan.billing_cycle, billing_day if billing_day is not None else sub.billing_day),
        "custom_price": custom_price,
    }
    if sub.plan_id != plan.id:
        values["next_billing_date"] = initial_next_billing_date(
            today, plan.billing_cycle, values["billing_day"],
            trial_days=plan.trial_days or default_trial_days, overflow=overflow,
        )

    batch = BillingBatch()
    batch.update_subscription(sub, **values)
    batch.log_activity(ActivityAction.CHANGE_SUBSCRIPTION_PLAN,
                       {"subscriptionId": sub.id, "fromPlanId": sub.plan_id, "toPlanId": plan.id},
                       user_id=user_id)
    repository.commit_batch(batch)
    return values


def update_subscription_status(repository, subscription_id, new_status, user_id, new_next_billing_date=None):
    """Operator suspend/resume/cancel. Resuming needs the date billing should restart from."""
    try:
        status = SubscriptionStatus(new_status)
    except ValueError:
        raise InvalidArgumentError("Invalid status", details={"newStatus": new_status})
    if status not in OPERATOR_STATUSES:
        raise InvalidArgumentError("Invalid status", details={"newStatus": new_status})

    sub = _get_subscription_or_404(repository, subscription_id)
    check_subscription_transition(sub.status, status)

    values = {"status": status}
    if status == SubscriptionStatus.ACTIVE:
        resuming = sub.status in (SubscriptionStatus.SUSPENDED, SubscriptionStatus.CANCELED)
        if resuming and new_next_billing_date is None:
            raise InvalidArgumentError("newNextBillingDate is required to resume a subscription")
        if new_next_billing_date is not None:
            values["next_billing_date"] = new_next_billing_date

    batch = BillingBatch()
    batch.update_subscription(sub, **values)
    batch.log_activity(ActivityAction.UPDATE_SUBSCRIPTION_STATUS,
                       {"subscriptionId": sub.id, "newStatus": status.value},
                       user_id=user_id)
    repository.commit_batch(batch)
    return values
