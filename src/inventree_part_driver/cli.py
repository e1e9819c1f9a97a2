import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import Dict, Optional
from typing_extensions import Annotated # Use typing_extensions for older Python versions if needed

from .config import AppConfig, ConfigError
from .driver import InvenTreeDriver
from .assembler import PartSelectionError
from .events import DriverEvent, StatusEvent
from .models import Display


app = typer.Typer(help="InvenTree part picker CLI")
console = Console()

STATUS_STYLES = {
    Display.STATUS_BAR: "bold blue",
    Display.ERROR_DIALOG: "bold red",
    Display.INFO_DIALOG: "bold yellow",
    Display.CONSOLE: "dim",
}


def print_status(event: DriverEvent) -> None:
    """Event listener printing status notifications to the console."""
    if not isinstance(event, StatusEvent):
        return
    style = STATUS_STYLES.get(event.display, "")
    console.print(f"[{style}]{escape(event.message)}[/{style}] [dim]({escape(event.context)})[/dim]")


def connect_driver(username: Optional[str], password: Optional[str]) -> InvenTreeDriver:
    """Loads the configuration, creates the driver and logs in. Exits with code 1 on failure."""
    config = AppConfig.load()
    credentials: Dict[str, str] = config.credentials()
    if username:
        credentials = {"username": username, "password": password or ""}

    driver = InvenTreeDriver(config.server_url, image_dir=config.image_dir, timeout=config.request_timeout)
    driver.subscribe(print_status)
    if not driver.connect(credentials, config.driver_id):
        driver.close()
        console.print("[bold red]Error:[/bold red] Could not connect to InvenTree.")
        raise typer.Exit(code=1)
    return driver


def render_details_table(title: str, fields: Dict[str, str]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Field", style="dim")
    table.add_column("Value")
    for name in sorted(fields):
        table.add_row(name, fields[name])
    return table


UsernameOption = Annotated[Optional[str], typer.Option("--username", "-u", help="InvenTree user name. Overrides INVENTREE_USERNAME.")]
PasswordOption = Annotated[Optional[str], typer.Option("--password", "-p", help="InvenTree password. Overrides INVENTREE_PASSWORD.")]


@app.command()
def info(username: UsernameOption = None, password: PasswordOption = None):
    """
    Connects to InvenTree and shows the server version information.
    """
    try:
        with connect_driver(username, password) as driver:
            console.print(render_details_table("InvenTree Server", driver.get_connection_info()))
    except ConfigError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def search(
    term: Annotated[str, typer.Argument(help="Free text to search parts for.")],
    select: Annotated[Optional[int], typer.Option("--select", "-s", help="Show the details of the part at this position (starting at 0).")] = None,
    username: UsernameOption = None,
    password: PasswordOption = None,
):
    """
    Searches InvenTree for parts and optionally shows the details of one of them.
    """
    console.print("[bold blue]InvenTree Part Picker[/bold blue]")

    try:
        with connect_driver(username, password) as driver:
            descriptions = driver.search(term)

            if not descriptions:
                console.print(f"[yellow]No parts found for '{term}'.[/yellow]")
                raise typer.Exit()

            parts_table = Table(title=f"Parts matching '{term}'", show_header=True, header_style="bold magenta")
            parts_table.add_column("#", justify="right")
            parts_table.add_column("Description")
            for position, description in enumerate(descriptions):
                parts_table.add_row(str(position), description)
            console.print(parts_table)

            if select is not None:
                details = driver.select_part(select)
                if details is None:
                    console.print(f"[bold red]Error:[/bold red] No details available for part #{select}.")
                    raise typer.Exit(code=1)
                console.print(render_details_table(f"Part #{select} ({descriptions[select]})", details.fields))
                if details.image_path is not None:
                    console.print(f"[italic]Image saved to {details.image_path}[/italic]")

    except ConfigError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    except PartSelectionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def capabilities():
    """
    Lists the configuration categories the InvenTree driver expects.
    """
    for capability in InvenTreeDriver.CAPABILITIES:
        console.print(capability.name)
