"""
AWS client for reading the live state of provisioned load balancers.
"""

import logging
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import ResourceInspectionError
from .models import LoadBalancerSnapshot

logger = logging.getLogger(__name__)

HTTP2_ATTRIBUTE = "routing.http2.enabled"
CROSS_ZONE_ATTRIBUTE = "load_balancing.cross_zone.enabled"
IDLE_TIMEOUT_ATTRIBUTE = "idle_timeout.timeout_seconds"


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


class LoadBalancerInspector:
    """
    Reads application load balancer state through the Elastic Load Balancing v2 API.

    One boto3 client is created lazily per region and reused for later lookups.
    """

    def __init__(self, session: Optional[Any] = None):
        """
        Initialize inspector.

        Args:
            session: Optional boto3 Session; the default session is used otherwise
        """
        self._session = session
        self._clients: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def _client(self, region: str) -> Any:
        with self._lock:
            if region not in self._clients:
                factory = self._session.client if self._session is not None else boto3.client
                self._clients[region] = factory("elbv2", region_name=region)
            return self._clients[region]

    def get_load_balancer(self, identifier: str, region: str) -> LoadBalancerSnapshot:
        """
        Fetch a point-in-time snapshot of a load balancer.

        Args:
            identifier: Load balancer ARN, or its name
            region: AWS region the load balancer lives in

        Returns:
            LoadBalancerSnapshot with state and attributes

        Raises:
            ResourceInspectionError: On API errors or when nothing matches
        """
        logger.debug("Inspecting load balancer %s in %s", identifier, region)
        if identifier.startswith("arn:"):
            lookup = {"LoadBalancerArns": [identifier]}
        else:
            lookup = {"Names": [identifier]}

        try:
            client = self._client(region)
            described = client.describe_load_balancers(**lookup)
            load_balancers = described.get("LoadBalancers", [])
            if not load_balancers:
                raise ResourceInspectionError(identifier, region)
            lb = load_balancers[0]
            arn = lb["LoadBalancerArn"]
            attrs_response = client.describe_load_balancer_attributes(LoadBalancerArn=arn)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to inspect %s in %s: %s", identifier, region, e)
            raise ResourceInspectionError(identifier, region, e) from e

        attributes = {
            item["Key"]: item.get("Value", "") for item in attrs_response.get("Attributes", [])
        }

        idle_timeout: Optional[int] = None
        if IDLE_TIMEOUT_ATTRIBUTE in attributes:
            try:
                idle_timeout = int(attributes[IDLE_TIMEOUT_ATTRIBUTE])
            except ValueError as e:
                raise ResourceInspectionError(identifier, region, e) from e

        http2 = attributes.get(HTTP2_ATTRIBUTE)
        return LoadBalancerSnapshot(
            arn=arn,
            dns_name=lb.get("DNSName", ""),
            state_code=lb.get("State", {}).get("Code", ""),
            enable_http2=_as_bool(http2, True) if http2 is not None else None,
            # Application load balancers always balance across zones unless told otherwise
            enable_cross_zone_load_balancing=_as_bool(attributes.get(CROSS_ZONE_ATTRIBUTE), True),
            idle_timeout=idle_timeout,
            attributes=attributes,
        )
