"""
User-friendly error messages for quick tunnel operations.

Maps technical errors to actionable messages with troubleshooting guidance.
"""

from .exceptions import (
    ConfigDecodeError,
    ConnectorError,
    ConnectorSetupError,
    NotificationError,
    PersistenceError,
    ProvisioningError,
    RestartRequiredError,
    SessionLockedError,
)


ERROR_MESSAGES = {
    'provisioning_timeout': {
        'message': 'Quick tunnel service did not answer in time',
        'guidance': 'This could be a temporary Cloudflare issue. Wait a few minutes and try again.'
    },
    'provisioning_failed': {
        'message': 'Failed to request a quick tunnel',
        'guidance': 'Check your internet connection and firewall settings. Make sure you can reach the quick tunnel service.'
    },
    'provisioning_invalid': {
        'message': 'Quick tunnel service returned an unusable response',
        'guidance': 'The service may be degraded or the --quick-service URL may be wrong. Try again later.'
    },
    'config_invalid': {
        'message': 'Stored tunnel configuration is corrupted',
        'guidance': 'Delete the credentials file to request a new quick tunnel on the next run.'
    },
    'config_locked': {
        'message': 'Tunnel configuration is in use',
        'guidance': 'Another instance is using the same credentials file. Stop it or pass a different --credentials path.'
    },
    'permission_denied': {
        'message': 'Could not access the tunnel configuration file',
        'guidance': 'Check file permissions on the credentials file and its directory.'
    },
    'callback_failed': {
        'message': 'Local server never acknowledged the tunnel URL',
        'guidance': 'Make sure the local server is running and its callback path answers with a 2xx status.'
    },
    'connector_failed': {
        'message': 'Tunnel process stopped with an error',
        'guidance': 'Check the cloudflared output above. The credentials file was kept so you can inspect it.'
    },
    'connector_setup_failed': {
        'message': 'Could not prepare the tunnel process',
        'guidance': 'Install cloudflared or pass its location with --cloudflared, and check that the working directory is writable. The credentials file was kept.'
    },
    'restart_required': {
        'message': 'Stored tunnel could not be started and was discarded',
        'guidance': 'Run again (or let your supervisor restart the service) to create a new quick tunnel.'
    },
}


def error_key_for(error):
    """
    Pick the ERROR_MESSAGES key describing an exception.

    Args:
        error: Exception raised by a quick tunnel component

    Returns:
        Key into ERROR_MESSAGES, or None if the error is not a known kind
    """
    if isinstance(error, RestartRequiredError):
        return 'restart_required'
    if isinstance(error, ProvisioningError):
        if error.kind == 'timeout':
            return 'provisioning_timeout'
        if error.kind in ('decode', 'validation', 'rejected'):
            return 'provisioning_invalid'
        return 'provisioning_failed'
    if isinstance(error, SessionLockedError):
        return 'config_locked'
    if isinstance(error, ConfigDecodeError):
        return 'config_invalid'
    if isinstance(error, PersistenceError):
        return 'permission_denied'
    if isinstance(error, NotificationError):
        return 'callback_failed'
    if isinstance(error, ConnectorSetupError):
        return 'connector_setup_failed'
    if isinstance(error, ConnectorError):
        return 'connector_failed'
    return None


def get_user_friendly_error(error_key):
    """
    Get user-friendly error message with guidance.

    Args:
        error_key: Key from ERROR_MESSAGES dict

    Returns:
        Dict with message and guidance
    """
    error_info = ERROR_MESSAGES.get(error_key, {
        'message': 'An unexpected error occurred',
        'guidance': 'Try again in a few minutes. If the problem continues, check the logs or delete the credentials file.'
    })

    return {
        'message': error_info['message'],
        'guidance': error_info['guidance']
    }
