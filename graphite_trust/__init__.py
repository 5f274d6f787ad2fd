"""
GraphiteTrust

Wallet trust scores, compliance metrics, balance history, mined blocks and
top-account rankings from the Graphite network explorer API, plus a local
CORS proxy for development.
"""

__version__ = "1.0.0"
__description__ = "Wallet trust and compliance dashboard for the Graphite network"

from graphite_trust.config.settings import GraphiteSettings
from graphite_trust.services.api_client import GraphiteAPIClient
from graphite_trust.services.queries import WalletQueries
from graphite_trust.services.query_cache import QueryClient
from graphite_trust.services.search_pipeline import SearchPipeline
from graphite_trust.services.wallet_dashboard import WalletDashboard

__all__ = [
    "GraphiteSettings",
    "GraphiteAPIClient",
    "WalletQueries",
    "QueryClient",
    "SearchPipeline",
    "WalletDashboard",
]
