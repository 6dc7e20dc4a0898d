"""
MS Graph client for the configured mailbox, created on first use.
"""

import logging

from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient

from core.config import GRAPH_APP_ID, GRAPH_CLIENT_SECRET, GRAPH_TENANT_ID
from models.errors import ErrorCodes, RemoteError

logger = logging.getLogger(__name__)

_graph_client: GraphServiceClient | None = None

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]


def missing_credentials() -> list[str]:
    """Names of the Graph app settings that are not configured."""
    settings = {
        "MICROSOFT_GRAPH_TENANT_ID": GRAPH_TENANT_ID,
        "MICROSOFT_GRAPH_APP_ID": GRAPH_APP_ID,
        "MICROSOFT_GRAPH_CLIENT_SECRET": GRAPH_CLIENT_SECRET,
    }
    return [name for name, value in settings.items() if not value]


def get_graph_client() -> GraphServiceClient:
    """
    Get or create the MS Graph client (lazy initialization).

    Raises:
        RemoteError: AUTH, when the app registration settings are missing
    """
    global _graph_client
    if _graph_client is None:
        missing = missing_credentials()
        if missing:
            raise RemoteError(ErrorCodes.AUTH, f"Graph credentials not configured: {', '.join(missing)}")

        credential = ClientSecretCredential(
            tenant_id=GRAPH_TENANT_ID,
            client_id=GRAPH_APP_ID,
            client_secret=GRAPH_CLIENT_SECRET,
        )
        _graph_client = GraphServiceClient(credentials=credential, scopes=GRAPH_SCOPES)
        logger.info("Graph client created for tenant %s", GRAPH_TENANT_ID)
    return _graph_client
