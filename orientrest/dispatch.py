"""Request dispatch against the node chosen by the load balancer."""

from __future__ import annotations

import logging

from .balancing import LoadBalancer
from .errors import ArgumentError
from .models import HttpRequestSpec, HttpResponse
from .nodes import Node, NodePool

LOG = logging.getLogger(__name__)

ONE_OFF_NODE_INDEX = 0


class RequestDispatcher:
    """Sends requests through a node pool; never interprets the response."""

    def __init__(self, pool: NodePool, balancer: LoadBalancer) -> None:
        if balancer.size != len(pool):
            raise ArgumentError(
                f"load balancer sized for {balancer.size} node(s), pool has {len(pool)}"
            )
        self._pool = pool
        self._balancer = balancer

    @property
    def pool(self) -> NodePool:
        return self._pool

    @property
    def balancer(self) -> LoadBalancer:
        return self._balancer

    def dispatch(
        self,
        spec: HttpRequestSpec,
        *,
        user: str | None = None,
        password: str | None = None,
        one_off: bool = False,
    ) -> HttpResponse:
        """Send ``spec``; explicit credentials on the spec win over ``user``/``password``."""

        node = self._target(one_off)
        auth_user = spec.user if spec.user is not None else user
        auth_password = spec.password if spec.password is not None else password
        auth = (auth_user, auth_password or "") if auth_user is not None else None
        headers: dict[str, str] = {}
        if spec.content_type:
            headers["Content-Type"] = spec.content_type
        LOG.debug(
            "%s %s%s",
            spec.method.upper(),
            node.base_url,
            spec.path,
            extra={"node": node.base_url, "one_off": one_off},
        )
        return node.request(spec.method, spec.path, headers=headers, body=spec.body, auth=auth)

    def _target(self, one_off: bool) -> Node:
        if one_off:
            return self._pool[ONE_OFF_NODE_INDEX]
        return self._pool[self._balancer.select()]


__all__ = ["ONE_OFF_NODE_INDEX", "RequestDispatcher"]
