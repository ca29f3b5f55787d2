"""CLI entry point for api-client-gen."""

import logging
from pathlib import Path

import click

from api_client_gen.config import GeneratorConfig, ModelsConfig, load_config
from api_client_gen.errors import ApiClientGenError
from api_client_gen.generator.compiler import compile_spec
from api_client_gen.generator.validator import validate_spec
from api_client_gen.models.resolver import FileBasedModelsResolver, ModelsResolver
from api_client_gen.parser.base import IssueSeverity, ValidationIssue
from api_client_gen.parser.swagger import load_spec

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _echo_issues(issues: list[ValidationIssue], quiet: bool) -> None:
    for issue in issues:
        if quiet and issue.severity == IssueSeverity.WARNING:
            continue
        click.echo(str(issue), err=True)


def _make_resolver(config: GeneratorConfig | None, models_dir: Path | None) -> ModelsResolver | None:
    models_config = config.models if config is not None else None
    if models_dir is not None:
        schemas = models_config.schemas if models_config is not None else {}
        models_config = ModelsConfig(output_dir=str(models_dir), schemas=schemas)
    if models_config is None:
        return None
    return FileBasedModelsResolver(Path.cwd(), models_config)


@click.group()
def main():
    """api-client-gen: compile OpenAPI/Swagger operations into method descriptors."""
    pass


@main.command("compile")
@click.argument("spec_path", required=False, type=click.Path(path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output file for the JSON report (default: stdout).")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Generator config file (YAML).")
@click.option("--env", default=None, help="Environment profile from the config to apply.")
@click.option("--models-dir", type=click.Path(path_type=Path), help="Directory of model modules used to resolve $ref types.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Do not print warnings.")
def compile_command(
    spec_path: Path | None,
    output: Path | None,
    config_path: Path | None,
    env: str | None,
    models_dir: Path | None,
    verbose: bool,
    quiet: bool,
):
    """Compile every operation of SPEC_PATH into method descriptors."""
    _setup_logging(verbose)
    try:
        config = load_config(config_path) if config_path else None
        if env is not None:
            if config is None:
                raise click.UsageError("--env requires --config")
            config = config.for_environment(env)

        if spec_path is None and config is not None and config.input:
            spec_path = Path(config.input)
        if spec_path is None:
            raise click.UsageError("SPEC_PATH is required when the config has no input")
        if output is None and config is not None and config.output:
            output = Path(config.output)

        logger.debug("Compiling %s", spec_path)
        doc = load_spec(spec_path)

        issues = validate_spec(doc)
        errors = [i for i in issues if i.severity == IssueSeverity.ERROR]
        if errors:
            _echo_issues(errors, quiet=False)
            raise click.ClickException(f"{spec_path} has {len(errors)} error(s), nothing compiled")

        report = compile_spec(doc, _make_resolver(config, models_dir))
    except ApiClientGenError as e:
        raise click.ClickException(str(e)) from e

    report = report.model_copy(update={"issues": issues + report.issues})
    _echo_issues(report.issues, quiet)

    result = report.model_dump_json(indent=2)
    if output is None:
        click.echo(result)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result, encoding="utf-8")
        click.echo(f"Report saved to {output}", err=True)

    click.echo(f"Compiled {len(report.methods)} methods, skipped {len(report.skipped)}.", err=True)


@main.command("validate")
@click.argument("spec_path", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def validate_command(ctx: click.Context, spec_path: Path):
    """Check SPEC_PATH for problems without compiling it."""
    try:
        doc = load_spec(spec_path)
    except ApiClientGenError as e:
        raise click.ClickException(str(e)) from e

    issues = validate_spec(doc)
    for issue in issues:
        click.echo(str(issue))

    if not issues:
        click.echo("No issues found.")
        return

    errors = sum(1 for i in issues if i.severity == IssueSeverity.ERROR)
    click.echo(f"Found {len(issues)} issues ({errors} errors).")
    if errors:
        ctx.exit(1)
