"""
Resolves a caller identity to its backend host, cluster and credential set.
"""

from aws_lambda_powertools import Logger
from models.errors import UnknownCluster, UnknownIdentity
from models.internal import DestinationMapping, ResolvedDestination

logger = Logger(child=True)


class DestinationResolver:
    """Exact-match lookups over a DestinationMapping; no fallback host."""

    def __init__(self, mapping: DestinationMapping):
        self.mapping = mapping

    def resolve(self, identity: str) -> ResolvedDestination:
        """
        Resolve an identity through identity -> host -> cluster -> credentials.

        Raises:
            UnknownIdentity: If the identity has no host alias
            UnknownCluster: If the host has no cluster or the cluster has no
                credential set
        """
        host_alias = self.mapping.identities.get(identity)
        if host_alias is None:
            raise UnknownIdentity(identity)

        cluster_name = self.mapping.hosts.get(host_alias)
        if cluster_name is None:
            raise UnknownCluster(host_alias)

        credentials = self.mapping.clusters.get(cluster_name)
        if credentials is None:
            raise UnknownCluster(host_alias, cluster_name)

        destination = ResolvedDestination(
            identity=identity,
            host_alias=host_alias,
            cluster_name=cluster_name,
            credentials=credentials,
            hostname=self.mapping.hostname_for(host_alias),
            backend_path=self.mapping.backend_path_for(cluster_name),
            token_path=self.mapping.token_path,
        )
        logger.debug(
            f"Resolved {identity} to host {host_alias} in cluster {cluster_name}"
        )
        return destination
