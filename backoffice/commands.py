import json

import click
from flask.cli import with_appcontext
from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy import func

from backoffice.repositories.sqlalchemy_repository import get_repository
from backoffice.services import billing_context


# 🧾 SCHEDULED BILLING JOBS
#
# crontab (UTC):
#   0 2 * * *  flask generate-invoices
#   0 3 * * *  flask update-overdue-invoices

@click.command('generate-invoices')
@with_appcontext
def generate_invoices_command():
    """
    Create invoices for every subscription due today or earlier
    Run once a day, before update-overdue-invoices

    Usage: flask generate-invoices
    """
    click.echo("🔍 Looking for subscriptions due for billing...")
    result = billing_context.build_generator().run(billing_context.today())

    click.echo(f"✅ {result.message}")
    click.echo(f"   Advanced without invoice: {result.advanced}")
    click.echo(f"   Waiting on unpaid invoice: {result.stalled}")
    click.echo(f"   Skipped: {result.skipped}")
    if result.failed:
        click.echo(f"⚠️  Failed: {result.failed} (see logs)", err=True)


@click.command('update-overdue-invoices')
@with_appcontext
def update_overdue_invoices_command():
    """
    Flag unpaid invoices past their due date as OVERDUE

    Usage: flask update-overdue-invoices
    """
    from backoffice.services.overdue_service import update_overdue_invoices

    count = update_overdue_invoices(get_repository(), billing_context.today())
    if count > 0:
        click.echo(f"✅ Updated {count} invoice(s) to OVERDUE")
    else:
        click.echo("✓ No overdue invoices")


@click.command('retry-subscription-advances')
@with_appcontext
def retry_subscription_advances_command():
    """
    Re-apply subscription advances left pending after a payment

    Usage: flask retry-subscription-advances
    """
    applied = billing_context.build_advancer().drain()
    click.echo(f"✅ Applied {applied} pending advance(s)")


@click.command('import-customers')
@click.argument('json_path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_customers_command(json_path):
    """
    Import customers from a JSON export, skipping duplicate storeIds

    Usage: flask import-customers customers_with_contacts.json
    """
    from backoffice.services.customer_import import import_customers

    with open(json_path, encoding="utf-8") as fh:
        records = json.load(fh)
    click.echo(f"Found {len(records)} customers to import")

    result = import_customers(
        get_repository(), records,
        batch_size=current_app.config.get("IMPORT_BATCH_SIZE", 500),
    )

    for item in result.skipped[:10]:
        click.echo(f"  - {item['name']} (storeId: {item['storeId']}) - {item['reason']}")
    if len(result.skipped) > 10:
        click.echo(f"  ... and {len(result.skipped) - 10} more")

    click.echo(f"✅ Imported {result.imported} customer(s)")
    if result.skipped:
        click.echo(f"⚠️  Skipped {len(result.skipped)} duplicate customer(s)")


@click.command('billing-stats')
@with_appcontext
def billing_stats_command():
    """
    Show invoice and subscription statistics

    Usage: flask billing-stats
    """
    from backoffice.extension.extensions import db
    from backoffice.models import Invoice, InvoiceStatus, Subscription, SubscriptionAdvance, AdvanceStatus
    from backoffice.services.state_machine import BILLABLE_STATUSES

    click.echo("\n📊 Billing Statistics\n")

    click.echo("📈 Invoices by status:")
    status_counts = (
        db.session.query(Invoice.status, func.count(Invoice.id))
        .group_by(Invoice.status)
        .all()
    )
    for status, count in status_counts:
        click.echo(f"   {status.value}: {count}")

    outstanding = (
        db.session.query(func.sum(Invoice.amount))
        .filter(Invoice.status.in_([InvoiceStatus.UNPAID, InvoiceStatus.OVERDUE]))
        .scalar() or 0
    )
    click.echo(f"\n💰 Outstanding: {float(outstanding):,.2f}")

    due = (
        Subscription.query
        .filter(Subscription.status.in_(BILLABLE_STATUSES))
        .filter(Subscription.next_billing_date <= billing_context.today())
        .count()
    )
    click.echo(f"🗓  Subscriptions due for billing: {due}")

    pending = SubscriptionAdvance.query.filter_by(status=AdvanceStatus.PENDING).count()
    if pending:
        click.echo(f"⚠️  Pending subscription advances: {pending} (run: flask retry-subscription-advances)")
    click.echo()


@click.command('issue-staff-token')
@click.argument('user_id')
@with_appcontext
def issue_staff_token_command(user_id):
    """
    Issue a JWT for a staff user (for calling the billing API)

    Usage: flask issue-staff-token staff-42
    """
    click.echo(create_access_token(identity=str(user_id)))


# Register all commands
def register_commands(app):
    """Register all Flask CLI commands"""
    app.cli.add_command(generate_invoices_command)
    app.cli.add_command(update_overdue_invoices_command)
    app.cli.add_command(retry_subscription_advances_command)
    app.cli.add_command(import_customers_command)
    app.cli.add_command(billing_stats_command)
    app.cli.add_command(issue_staff_token_command)
