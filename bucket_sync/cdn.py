"""CloudFront cache invalidation after a sync."""

import uuid
from typing import Iterable, Optional
from urllib.parse import quote

from bucket_sync.logging_setup import get_logger

logger = get_logger()


class CloudFrontInvalidator:
    """Creates invalidations for changed object keys."""

    def __init__(self, client):
        """Initialize invalidator.

        Args:
            client: boto3 CloudFront client
        """
        self.client = client

    def invalidate(self, distribution_id: str, keys: Iterable[str]) -> Optional[str]:
        """Invalidate the URL-quoted ``/<key>`` for every key in one batch.

        Returns:
            Invalidation id, or None when there was nothing to invalidate
        """
        paths = sorted(quote("/" + key.lstrip("/")) for key in keys)
        if not paths:
            logger.info("No changed keys, skipping CloudFront invalidation")
            return None

        response = self.client.create_invalidation(
            DistributionId=distribution_id,
            InvalidationBatch={
                "Paths": {"Quantity": len(paths), "Items": paths},
                "CallerReference": str(uuid.uuid4()),
            },
        )
        invalidation_id = response["Invalidation"]["Id"]
        logger.info(
            f"Created invalidation {invalidation_id} for {len(paths)} paths "
            f"on distribution {distribution_id}"
        )
        return invalidation_id
