"""
Command line entry point for the quick tunnel keeper.
"""

import logging
from typing import Optional

import typer

from . import __version__, settings
from .callback import CallbackNotifier
from .connector import CloudflaredConnector
from .error_messages import error_key_for, get_user_friendly_error
from .exceptions import RestartRequiredError, TunnelError
from .orchestrator import SessionOrchestrator
from .provisioning import ProvisioningClient
from .store import ConfigStore

# sysexits EX_TEMPFAIL: a plain re-run is expected to succeed
EXIT_RESTART_REQUIRED = 75

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

app = typer.Typer(
    name='quicktunnel',
    help='Creates a Cloudflare quick tunnel, maintains the credentials and notifies when the url of the tunnel changes.',
    no_args_is_help=True,
)

logger = logging.getLogger('quicktunnel')


def configure_logging(level: str, log_file: Optional[str] = None):
    """Configure the root logger for console output and an optional log file."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise typer.BadParameter(f"Unknown log level: {level}", param_hint='--loglevel')

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)


@app.command()
def run(
    credentials: str = typer.Option(settings.CONFIG_FILE, '--credentials', help='File holding the quick tunnel URL and credentials'),
    callback: str = typer.Option(settings.CALLBACK_PATH, '--callback', help='Path on the local server told about the tunnel URL'),
    url: str = typer.Option(settings.LOCAL_URL, '--url', help='Local web server the tunnel connects to'),
    quick_service: str = typer.Option(settings.QUICK_SERVICE_URL, '--quick-service', help='Service which manages quick tunnels'),
    protocol: str = typer.Option(settings.PROTOCOL, '--protocol', '-p', help='Protocol used to connect to the edge'),
    cloudflared: Optional[str] = typer.Option(settings.CLOUDFLARED_PATH, '--cloudflared', help='Path to the cloudflared binary'),
    callback_max_elapsed: float = typer.Option(
        settings.CALLBACK_MAX_ELAPSED, '--callback-max-elapsed',
        help='Seconds to keep retrying the callback, 0 retries forever'
    ),
    loglevel: str = typer.Option(settings.LOG_LEVEL, '--loglevel', help='debug, info, warning or error'),
    logfile: Optional[str] = typer.Option(settings.LOG_FILE, '--logfile', help='Also write the log to this file'),
):
    """Run a quick tunnel, reusing stored credentials when present."""
    configure_logging(loglevel, logfile)

    connector = CloudflaredConnector(url, binary=cloudflared, protocol=protocol)
    orchestrator = SessionOrchestrator(
        store=ConfigStore(credentials),
        provisioner=ProvisioningClient(quick_service),
        notifier=CallbackNotifier(
            url,
            callback,
            max_elapsed=callback_max_elapsed if callback_max_elapsed > 0 else None
        ),
        connector=connector,
    )

    try:
        connector.check()
        orchestrator.run()
    except TunnelError as e:
        info = get_user_friendly_error(error_key_for(e))
        logger.error(str(e))
        logger.error(f"{info['message']}. {info['guidance']}")
        if isinstance(e, RestartRequiredError):
            raise typer.Exit(code=EXIT_RESTART_REQUIRED)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        raise typer.Exit(code=130)


@app.command()
def version():
    """Print the version."""
    typer.echo(f"quicktunnel {__version__}")
