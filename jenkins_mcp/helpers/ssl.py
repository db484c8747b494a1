"""
SSL configuration helpers for the Jenkins client.
"""
import ssl

from loguru import logger


def get_ssl_context(
    skip_verify: bool = False, ca_cert: str | None = None
) -> ssl.SSLContext | bool:
    """
    Get the `verify` value to hand to httpx for the Jenkins connection.

    Args:
        skip_verify: Disable certificate verification altogether
        ca_cert: Path to a PEM bundle used as the trust root instead of the system store

    Returns:
        False when verification is disabled, an SSLContext trusting `ca_cert` when one is
        configured, True for the default behavior
    """
    if skip_verify:
        logger.warning(
            "SSL certificate verification is disabled for the Jenkins client. "
            "This is not recommended for production use."
        )
        return False

    if ca_cert:
        logger.info(f"Using custom CA certificate for the Jenkins client: {ca_cert}")
        return ssl.create_default_context(cafile=ca_cert)

    return True
