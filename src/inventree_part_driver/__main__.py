"""
Entry point of the InvenTree part picker.

Sets up logging for the driver modules, then runs the Typer app whose
commands log in to InvenTree, search parts by free text and print the
resolved details (parameters, default stock location, image file) of a
selected result.
"""
import logging

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)
logger.debug("Part picker starting.")

# The cli module loads the config and creates the driver when a command runs.
from .cli import app

def run():
    """Runs the Typer CLI application."""
    app()

if __name__ == "__main__":
    run()
