"""
CLI interface for legal-doc-auto.

Provides command-line access to setup, the support calculator, document
generation and the HTTP server.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from legal_doc_auto.config.loader import AppConfig, load_app_config
from legal_doc_auto.core.entitlements import (
    SubscriptionStatus,
    SubscriptionTier,
    get_document_limit,
)
from legal_doc_auto.core.errors import DocumentPipelineError, EntitlementError
from legal_doc_auto.core.pipeline import GenerationRequest, build_services
from legal_doc_auto.core.support_calculator import (
    SupportCalculationInputs,
    compute_support,
    validate_support_inputs,
)
from legal_doc_auto.storage.db import StorageError
from legal_doc_auto.storage.repository import (
    OrganizationRepository,
    TemplateRepository,
    UserProfileRepository,
    initialize_schema,
)

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj["config"]


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """legal-doc-auto CLI."""
    _configure_logging(verbose)
    try:
        config = load_app_config(config_path)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    ctx.obj = {"config": config}
    if ctx.invoked_subcommand is None:
        console.print("legal-doc-auto - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Create the database schema and seed the default templates."""
    db_path = _config(ctx).storage.database_path
    try:
        initialize_schema(db_path)
        count = TemplateRepository(db_path).seed_default_templates()
        console.print(f"[green]✓[/] Database initialized at {db_path} ({count} templates)")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("create-org")
def create_org(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Organization name"),
    user_id: str = typer.Option(..., "--user-id", "-u", help="User to attach to the organization"),
    tier: SubscriptionTier = typer.Option(SubscriptionTier.TRIAL, "--tier", "-t"),
):
    """Create an organization with one user profile."""
    db_path = _config(ctx).storage.database_path
    try:
        organization = OrganizationRepository(db_path).create(name, subscription_tier=tier.value)
        UserProfileRepository(db_path).create(user_id, organization.id)
    except StorageError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Created organization {organization.id} ({tier.value}) for user {user_id}")
    sys.exit(EXIT_CODE_PASS)


@app.command("set-plan")
def set_plan(
    ctx: typer.Context,
    organization_id: str = typer.Argument(..., help="Organization id"),
    tier: Optional[SubscriptionTier] = typer.Option(None, "--tier", "-t"),
    status: Optional[SubscriptionStatus] = typer.Option(None, "--status", "-s"),
):
    """Change an organization's subscription tier or status."""
    if tier is None and status is None:
        console.print("[red]Error:[/] Provide --tier and/or --status")
        sys.exit(EXIT_CODE_FAIL)
    try:
        organization = OrganizationRepository(_config(ctx).storage.database_path).update_subscription(
            organization_id,
            subscription_tier=tier.value if tier else None,
            subscription_status=status.value if status else None,
        )
    except StorageError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    limit = get_document_limit(organization.subscription_tier)
    console.print(
        f"[green]✓[/] {organization.name}: {organization.subscription_tier} "
        f"({organization.subscription_status}), "
        f"{organization.documents_used}/{'unlimited' if limit < 0 else limit} documents used"
    )
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: float) -> str:
    return f"${amount:,.0f}"


@app.command()
def calculate(
    parent1_income: float = typer.Option(..., "--parent1-income", help="Paying parent gross monthly income"),
    parent2_income: float = typer.Option(..., "--parent2-income", help="Receiving parent gross monthly income"),
    parent1_timeshare: float = typer.Option(20, "--parent1-timeshare", help="Paying parent timeshare %"),
    parent2_timeshare: Optional[float] = typer.Option(None, "--parent2-timeshare"),
    parent1_deductions: float = typer.Option(0, "--parent1-deductions"),
    parent2_deductions: float = typer.Option(0, "--parent2-deductions"),
    children: int = typer.Option(1, "--children", "-n"),
    childcare: float = typer.Option(0, "--childcare"),
    health_insurance: float = typer.Option(0, "--health-insurance"),
    uninsured_medical: float = typer.Option(0, "--uninsured-medical"),
):
    """
    Estimate California guideline child support.

    Uses the simplified guideline formula; the result is an estimate, not a
    statutory calculation.
    """
    inputs = SupportCalculationInputs(
        parent1_gross_income=parent1_income,
        parent1_deductions=parent1_deductions,
        parent1_timeshare=parent1_timeshare,
        parent2_gross_income=parent2_income,
        parent2_deductions=parent2_deductions,
        parent2_timeshare=100 - parent1_timeshare if parent2_timeshare is None else parent2_timeshare,
        number_of_children=children,
        childcare_costs=childcare,
        health_insurance_premium=health_insurance,
        uninsured_medical_costs=uninsured_medical,
    )
    validation = validate_support_inputs(inputs)
    if not validation.is_valid:
        for error in validation.errors:
            console.print(f"[red]✗[/] {error}")
        sys.exit(EXIT_CODE_FAIL)

    result = compute_support(inputs)
    breakdown = result.breakdown

    table = Table(title="Guideline Child Support Estimate")
    table.add_column("Item")
    table.add_column("Amount", justify="right")
    table.add_row("Parent 1 net income", _format_currency(breakdown.parent1_net_income))
    table.add_row("Parent 2 net income", _format_currency(breakdown.parent2_net_income))
    table.add_row("Combined net income", _format_currency(breakdown.total_net_income))
    table.add_row("Higher earner timeshare", f"{breakdown.higher_earner_percentage}%")
    table.add_row("Base support", _format_currency(result.base_support))
    table.add_row("Childcare add-on", _format_currency(breakdown.childcare_add_on))
    table.add_row("Health insurance add-on", _format_currency(breakdown.health_insurance_add_on))
    table.add_row("Uninsured medical add-on", _format_currency(breakdown.uninsured_medical_add_on))
    table.add_row("[bold]Monthly support[/bold]", f"[bold]{_format_currency(result.monthly_support)}[/bold]")
    console.print(table)
    console.print(f"Paid by: {result.paying_parent}")

    for warning in result.warnings:
        console.print(f"[yellow]![/] {warning}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def generate(
    ctx: typer.Context,
    template_id: str = typer.Argument(..., help="Document type identifier, e.g. divorce-petition-ca"),
    user_id: str = typer.Option(..., "--user-id", "-u"),
    fields_path: Path = typer.Option(..., "--fields", "-f", help="JSON file with the form fields"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Backend to try first"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Copy the artifacts here"),
):
    """Generate a document through the full pipeline."""
    try:
        form_data = json.loads(fields_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error reading fields:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    if not isinstance(form_data, dict):
        console.print("[red]Error reading fields:[/] expected a JSON object")
        sys.exit(EXIT_CODE_FAIL)

    try:
        services = build_services(_config(ctx))
        identity = services.identity_provider.resolve(user_id)
        persisted = services.pipeline.generate(
            identity,
            GenerationRequest(template_id=template_id, form_data=form_data, ai_provider=provider),
        )
    except EntitlementError as e:
        console.print(f"[red]{e.code}:[/] {e.message} ({e.current_usage}/{e.limit}, {e.tier})")
        sys.exit(EXIT_CODE_FAIL)
    except DocumentPipelineError as e:
        console.print(f"[red]{e.code}:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    record = persisted.record
    console.print(f"[green]✓[/] {record.title}")
    console.print(f"Document id: {record.id}")
    console.print(f"DOCX: {persisted.download_url}")
    console.print(f"PDF: {persisted.pdf_url or 'unavailable'}")

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        for key in filter(None, (record.file_url, record.pdf_url)):
            target = output_dir / Path(key).name
            target.write_bytes(services.blob_store.get(key))
            console.print(f"Wrote {target}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from legal_doc_auto.api.app import create_app

    try:
        services = build_services(_config(ctx))
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    api = create_app(services.pipeline, services.blob_store, services.identity_provider)
    uvicorn.run(api, host=host, port=port)


if __name__ == "__main__":
    app()
