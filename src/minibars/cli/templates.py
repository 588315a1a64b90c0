"""CLI commands for template operations."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..config import build_engine, load_yaml_config
from ..templates import (
    TemplateEngine,
    TemplateValidator,
    ValidationLevel,
    ValidationResult,
    register_site_components,
)

console = Console()

HELPER_INFO = [
    ("formatDate", "Format a date (short, long, time)", '{{formatDate date "short"}} → Jan 5, 2024'),
    ("truncate", "Truncate text to length", "{{truncate summary 50}}"),
    ("join", "Join a list", '{{join tags " / "}} → a / b'),
    ("upper", "Uppercase text", "{{upper name}}"),
    ("lower", "Lowercase text", "{{lower name}}"),
    ("capitalize", "Capitalize first letter only", "{{capitalize category}}"),
    ("default", "Fallback for missing values", '{{default title "Untitled"}}'),
    ("add", "Add two numbers", "{{add @index 1}}"),
    ("subtract", "Subtract two numbers", "{{subtract total 1}}"),
    ("multiply", "Multiply two numbers", "{{multiply price 2}}"),
    ("divide", "Divide two numbers", "{{divide total count}}"),
    ("eq", "Strict equality", '{{#if eq status "open"}}...{{/if}}'),
    ("ne", "Strict inequality", '{{ne status "closed"}}'),
    ("gt", "Greater than", "{{#if gt count 0}}...{{/if}}"),
    ("lt", "Less than", "{{lt count 10}}"),
    ("gte", "Greater than or equal", "{{gte count 1}}"),
    ("lte", "Less than or equal", "{{lte count 9}}"),
]

_PATH_OPTION = click.Path(exists=True, path_type=Path)


def _load_engine(config_path: Optional[Path] = None) -> TemplateEngine:
    """Engine from a config file, or a default one with the site components."""
    if config_path is None:
        engine = TemplateEngine()
        register_site_components(engine)
        return engine

    config = load_yaml_config(config_path)
    package_logger = logging.getLogger("minibars")
    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(config.log_level_number)
    return build_engine(config)


def _load_data(data_path: Optional[Path]) -> Dict[str, Any]:
    if data_path is None:
        return {}

    text = data_path.read_text(encoding="utf-8")
    if data_path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Data file {data_path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def _resolve_template(engine: TemplateEngine, template: str) -> str:
    """Registered names are returned as is, paths are read."""
    if engine.get_template(template) is not None:
        return template

    path = Path(template)
    if not path.is_file():
        raise ValueError(
            f"'{template}' is neither a registered template nor a template file"
        )
    return path.read_text(encoding="utf-8")


def _print_findings(result: ValidationResult) -> None:
    if result.is_valid:
        console.print("✅ [green]Template is valid[/green]")
    else:
        console.print("❌ [red]Template validation failed[/red]")

    for title, style, messages in (
        ("Errors", "red", result.errors),
        ("Warnings", "yellow", result.warnings),
    ):
        if messages:
            console.print(f"\n[{style}]{title}:[/{style}]")
            for message in messages:
                console.print(f"  • {message}", markup=False)


def _fail(error: Exception) -> NoReturn:
    console.print(f"❌ [red]Error:[/red] {error}")
    raise click.Abort()


@click.group(name="template")
def template_group() -> None:
    """Template validation and rendering commands."""
    pass


@template_group.command("render")
@click.argument("template", type=str)
@click.option("--data", "data_path", type=_PATH_OPTION, help="JSON or YAML file with template data")
@click.option("--config", "config_path", type=_PATH_OPTION, help="Engine configuration file")
@click.option("--output", type=click.Path(path_type=Path), help="Write the HTML to this file")
@click.option("--options", type=str, help="JSON object with render options")
def render_template(
    template: str,
    data_path: Optional[Path],
    config_path: Optional[Path],
    output: Optional[Path],
    options: Optional[str],
) -> None:
    """Render a template file or registered template name."""
    try:
        engine = _load_engine(config_path)
        html = engine.render(
            _resolve_template(engine, template),
            _load_data(data_path),
            json.loads(options) if options else None,
        )
    except Exception as e:
        _fail(e)

    if output is None:
        click.echo(html)
        return

    output.write_text(html, encoding="utf-8")
    console.print(f"📄 Output saved to {output}")


@template_group.command("validate")
@click.argument("template_path", type=_PATH_OPTION)
@click.option(
    "--level",
    type=click.Choice([level.value for level in ValidationLevel]),
    default=ValidationLevel.STANDARD.value,
    help="Validation strictness level",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Report format",
)
@click.option(
    "--config",
    "config_path",
    type=_PATH_OPTION,
    help="Engine configuration file (for known helpers and components)",
)
def validate_template(
    template_path: Path, level: str, output_format: str, config_path: Optional[Path]
) -> None:
    """Validate template syntax, references and HTML contexts."""
    try:
        validator = TemplateValidator(_load_engine(config_path), ValidationLevel(level))
        result = validator.validate(template_path.read_text(encoding="utf-8"))
    except Exception as e:
        _fail(e)

    if output_format == "json":
        report = {
            "is_valid": result.is_valid,
            "errors": result.errors,
            "warnings": result.warnings,
            "variables": sorted(result.variables),
            "metadata": result.metadata,
        }
        console.print_json(json.dumps(report))
    else:
        _print_findings(result)
        console.print(
            f"\n[dim]Template variables:[/dim] {', '.join(sorted(result.variables))}"
        )
        console.print(
            f"[dim]Size:[/dim] {result.metadata.get('length', 0)} characters, "
            f"{result.metadata.get('lines', 0)} lines"
        )

    if not result.is_valid:
        raise SystemExit(1)


@template_group.command("test")
@click.argument("template_string", type=str)
@click.option("--context", type=str, help="JSON object with template data")
@click.option("--variables", type=str, help="Comma-separated expected variable names")
def test_template(
    template_string: str, context: Optional[str], variables: Optional[str]
) -> None:
    """Validate and render a template string given on the command line."""
    try:
        data = json.loads(context) if context else {}
        expected = {name.strip() for name in variables.split(",")} if variables else None

        engine = _load_engine()
        result = TemplateValidator(engine).validate(
            template_string, expected_variables=expected
        )
        html = engine.render(template_string, data) if result.is_valid else None
    except Exception as e:
        _fail(e)

    console.print("🧪 [bold]Template Test Results[/bold]")
    console.print()
    console.print(
        Panel(Syntax(template_string, "handlebars", theme="monokai"), title="Template", expand=False)
    )
    _print_findings(result)

    if html is not None:
        console.print()
        console.print(
            Panel(Syntax(html, "html", theme="monokai"), title="Rendered Output", expand=False)
        )

    if result.variables:
        console.print(f"\n[dim]Variables found:[/dim] {', '.join(sorted(result.variables))}")


@template_group.command("helpers")
def list_helpers() -> None:
    """List built-in template helpers and site components."""
    table = Table(title="🔧 Available Helpers")
    table.add_column("Helper", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Example", style="green")
    for row in HELPER_INFO:
        table.add_row(*row)
    console.print(table)

    console.print("\n[dim]Components:[/dim]")
    for name in _load_engine().components:
        console.print(f"  • [cyan]{{{{component:{name} ...}}}}[/cyan]")
