"""
Connection utility for the Supabase backend.

This module provides lazy creation of the asynchronous Supabase client with
retry logic and connection statistics.
"""

import asyncio
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from supabase import acreate_client, AsyncClient
from supabase.lib.client_options import AsyncClientOptions
import tenacity
from tenacity import retry, stop_after_attempt, wait_exponential

from ..config import get_config, SupabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Raised when the Supabase client cannot be created."""
    pass


class SupabaseClient:
    """
    Supabase async client wrapper with retry logic.
    """

    def __init__(self, supabase_config: Optional[SupabaseConfig] = None):
        self.config = supabase_config or get_config().supabase
        self._client: Optional[AsyncClient] = None
        self._lock = asyncio.Lock()
        self._connection_stats = {
            "total_connections": 0,
            "failed_connections": 0,
            "last_connection_time": None,
            "last_failure_time": None,
        }

    @property
    def connection_stats(self) -> Dict[str, Any]:
        return self._connection_stats.copy()

    async def get_client(self) -> AsyncClient:
        """
        Get the Supabase client instance, creating it on first use.

        Returns:
            AsyncClient: The Supabase client instance.

        Raises:
            DatabaseConnectionError: If client initialization fails.
        """
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    try:
                        self._client = await self._initialize_client()
                    except tenacity.RetryError as e:
                        raise DatabaseConnectionError(
                            f"Client initialization failed: {e.last_attempt.exception()}"
                        ) from e
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=tenacity.retry_if_exception_type(Exception),
    )
    async def _initialize_client(self) -> AsyncClient:
        """Initialize the Supabase client with configuration."""
        try:
            options = AsyncClientOptions(
                postgrest_client_timeout=self.config.timeout,
                storage_client_timeout=self.config.timeout,
            )
            client = await acreate_client(self.config.url, self.config.key, options=options)

            self._connection_stats["last_connection_time"] = datetime.now(timezone.utc)
            self._connection_stats["total_connections"] += 1
            logger.info("Supabase client initialized successfully")
            return client

        except Exception as e:
            self._connection_stats["failed_connections"] += 1
            self._connection_stats["last_failure_time"] = datetime.now(timezone.utc)
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise

    async def close(self) -> None:
        """Drop the client; the next call re-creates it."""
        self._client = None
        logger.info("Supabase client released")
