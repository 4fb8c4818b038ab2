"""Cluster election status checks."""
from __future__ import annotations

from clustersnap.common.errors import DecodeError
from clustersnap.common.http_client import ClusterHTTPClient
from clustersnap.common.logger import logger
from clustersnap.snapshot import templates


def local_node_id(client: ClusterHTTPClient) -> str:
    request = templates.render(templates.LOCAL_NODE, {})
    payload = client.perform_json(request.method, request.path)
    nodes = payload.get("nodes") if isinstance(payload, dict) else None
    if not isinstance(nodes, dict) or len(nodes) != 1:
        raise DecodeError(f"Expected exactly one local node, got: {nodes!r}")
    return next(iter(nodes))


def master_node_id(client: ClusterHTTPClient) -> str:
    request = templates.render(templates.MASTER_NODE, {})
    payload = client.perform_json(request.method, request.path)
    master = payload.get("master_node") if isinstance(payload, dict) else None
    if not isinstance(master, str):
        raise DecodeError(f"Cluster state carries no master_node: {payload!r}")
    return master


def is_master_node(client: ClusterHTTPClient) -> bool:
    """Return True if the node behind ``client`` is the elected master."""

    local_id = local_node_id(client)
    master_id = master_node_id(client)
    logger.debug("Local node {}, elected master {}", local_id, master_id)
    return local_id == master_id


__all__ = ["is_master_node", "local_node_id", "master_node_id"]
