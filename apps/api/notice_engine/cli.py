"""CLI tools for takedown compliance operations."""

import click

from notice_engine.core.security import create_session_token
from notice_engine.db.enums import Role, TrustLevel
from notice_engine.db.session import SessionLocal
from notice_engine.services import (
    audit_service,
    counter_notice_service,
    repeat_infringer_service,
    takedown_service,
    trusted_flagger_service,
)
from notice_engine.services.trusted_flagger_service import DuplicateFlaggerError


@click.group()
def cli():
    """Notice engine CLI tools."""
    pass


@cli.command()
def list_overdue():
    """
    List open notices past their SLA deadline.

    Example:
        python -m notice_engine.cli list-overdue
    """
    db = SessionLocal()
    try:
        notices = takedown_service.list_overdue_notices(db)
        if not notices:
            click.echo("✓ No overdue notices")
            return
        for notice in notices:
            click.echo(
                f"{notice.ticket_id}  {notice.jurisdiction}  {notice.priority:<6}  "
                f"{notice.status:<24}  due {notice.sla_deadline.isoformat()}"
            )
        click.echo(f"{len(notices)} overdue")
    finally:
        db.close()


@cli.command()
def list_reinstatement_due():
    """List counter-notices whose waiting period has elapsed."""
    db = SessionLocal()
    try:
        due = counter_notice_service.list_reinstatement_due(db)
        for counter in due:
            click.echo(
                f"{counter.notice.ticket_id}  reinstate after {counter.reinstate_after.isoformat()}"
            )
        click.echo(f"{len(due)} awaiting decision")
    finally:
        db.close()


@cli.command()
def expire_strikes():
    """
    Expire repeat-infringer strikes past their expiry date and recount eligibility.

    Example:
        python -m notice_engine.cli expire-strikes
    """
    db = SessionLocal()
    try:
        expired = repeat_infringer_service.expire_strikes(db)
        click.echo(f"✓ Expired {expired} strike(s)")
    finally:
        db.close()


@cli.command()
@click.argument("ticket_id")
@click.pass_context
def verify_audit_chain(ctx, ticket_id: str):
    """Recompute the audit hash chain for TICKET_ID. Exits 1 when broken."""
    db = SessionLocal()
    try:
        notice = takedown_service.get_notice(db, ticket_id)
        if notice is None:
            click.echo(f"❌ Notice {ticket_id} not found")
            ctx.exit(2)
        result = audit_service.verify_chain(db, notice)
        if result.valid:
            click.echo(f"✓ Audit chain intact ({result.checked} events)")
            return
        click.echo(f"❌ Audit chain broken at event {result.broken_at} ({result.checked} checked)")
        ctx.exit(1)
    finally:
        db.close()


@cli.command()
@click.option("--organization", required=True, help="Flagger organization name")
@click.option("--email", required=True, help="Contact email used on submitted notices")
@click.option(
    "--trust-level",
    type=click.Choice([t.value for t in TrustLevel]),
    default=TrustLevel.STANDARD.value,
    show_default=True,
)
@click.option("--dsa-certified", is_flag=True, default=False, help="DSA Art. 22 certified")
def add_trusted_flagger(organization: str, email: str, trust_level: str, dsa_certified: bool):
    """
    Register a trusted flagger.

    Example:
        python -m notice_engine.cli add-trusted-flagger --organization "Label Co" --email legal@label.example --trust-level premium
    """
    db = SessionLocal()
    try:
        flagger = trusted_flagger_service.add_flagger(
            db,
            organization_name=organization,
            contact_email=email,
            trust_level=TrustLevel(trust_level),
            dsa_certified=dsa_certified,
        )
        click.echo(f"✓ Registered {flagger.organization_name} ({flagger.trust_level})")
        click.echo(f"  ID: {flagger.id}")
    except DuplicateFlaggerError:
        click.echo(f"❌ A trusted flagger with email {email} already exists")
    finally:
        db.close()


@cli.command()
@click.option("--user-id", required=True, help="Operator id")
@click.option("--role", type=click.Choice([r.value for r in Role]), required=True)
def issue_token(user_id: str, role: str):
    """Print a session token for an operator (service accounts, local testing)."""
    click.echo(create_session_token(user_id, role))


if __name__ == "__main__":
    cli()
