#!/usr/bin/env python3
"""WebStack CLI - Main entry point"""

import functools
import os
import sys
from pathlib import Path
from typing import Optional, Tuple

from rich.console import Console

import rich_click as click

from webstack import __version__
from webstack.core.config_loader import StackOverrides, WebStackSettings
from webstack.exceptions import WebStackError
from webstack.router import USAGE, CommandRouter

# Configure rich-click help output
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100
click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_ARGUMENT = "bold yellow"
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.ALIGN_OPTIONS_PANEL = "left"
click.rich_click.ERRORS_EPILOGUE = ""

console = Console()


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""
    from click.exceptions import ClickException, MissingParameter, UsageError

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (MissingParameter, UsageError) as e:
            console.print(f"\n[bold red]✗ Error:[/bold red] {e.format_message()}\n")
            console.print("[dim]Run[/dim] [cyan]webstack help[/cyan] [dim]for usage information[/dim]\n")
            sys.exit(1)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")
            if os.environ.get("DEBUG") or os.environ.get("VERBOSE"):
                import traceback

                console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("command", required=False)
@click.option(
    "-e",
    "--extra",
    "extra",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a stack option (repeatable)",
)
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory holding inventory, playbook and vault",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file (default: webstack.yml in the project directory)",
)
@click.option("-v", "--verbose", is_flag=True, help="Show all remote output")
@click.version_option(version=__version__)
@click.pass_context
def cli(
    ctx: click.Context,
    command: Optional[str],
    extra: Tuple[str, ...],
    project_dir: Path,
    settings_file: Optional[Path],
    verbose: bool,
) -> None:
    """
    WebStack - Deploy Docker, Traefik and Nginx across a fleet with Ansible.

    \b
    Commands:
      webstack full        # Docker + Traefik + Nginx (alias: deploy)
      webstack docker      # Docker only
      webstack web         # Traefik + Nginx
      webstack update      # Re-run the last recorded deployment
      webstack status      # Service state per host
      webstack headers     # Configure header mode
      webstack info        # Deployment details
      webstack remove      # Tear the stack down
      webstack help        # Usage

    \b
    Examples:
      webstack headers -e header_mode=custom -e custom_server_header=Apache/2.4.41
      webstack full -e concurrency=5 -e timeout=900

    Run without a command for the interactive menu.
    """
    if command and command.strip().lower() == "help":
        console.print(USAGE, markup=False, highlight=False)
        ctx.exit(0)

    try:
        settings = WebStackSettings.load(project_dir.resolve(), settings_file)
        overrides = StackOverrides.parse(extra)
    except WebStackError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e.message}")
        if e.context:
            console.print(f"[dim]{e.context}[/dim]")
        ctx.exit(e.exit_code)

    router = CommandRouter(settings, overrides, verbose=verbose, console=console)
    if command is None:
        ctx.exit(router.run_interactive())
    ctx.exit(router.run_command(command))


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    cli()


if __name__ == "__main__":
    main()
