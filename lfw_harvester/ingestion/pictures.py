"""
Picture Sync Module
===================

Keeps the thumbnail of a product in line with the image URL of its
payload. The stored ``dct:source`` of the current thumbnail is compared
with the payload first, so unchanged pictures are never downloaded again.

A thumbnail is a pair of ``nfo:FileDataObject`` nodes: the logical file
(``http://veeakker.be/files/<uuid>``, carrying the source URL) and the
physical share file (``share://<uuid>.<ext>``) pointing at it through
``nie:dataSource``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from lfw_harvester.core.enums import PictureOutcome
from lfw_harvester.core.vocabulary import DEFAULT_GRAPH, FILE_PREDICATES, UriBase
from lfw_harvester.ingestion.identifiers import IdFactory, new_uuid
from lfw_harvester.ingestion.storage import (
    ShareStorage,
    detect_mime_type,
    extension_for_mime,
    extension_from_url,
    filename_from_url,
)
from lfw_harvester.store.engine import TripleStore
from lfw_harvester.store.statements import (
    delete_property_values,
    escape_datetime,
    escape_int,
    escape_string,
    escape_uri,
    in_graph,
    insert_data,
    triples_block,
    with_prefixes,
)

if TYPE_CHECKING:
    from lfw_harvester.ingestion.client import LfwClient

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PictureSync:
    """Reconciles product thumbnails with the image URLs of the LFW API."""

    def __init__(
        self,
        store: TripleStore,
        client: LfwClient,
        storage: ShareStorage,
        graph: str = DEFAULT_GRAPH,
        id_factory: IdFactory = new_uuid,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.client = client
        self.storage = storage
        self.graph = graph
        self.id_factory = id_factory
        self.clock = clock

    async def has_picture(self, product_uri: str, image_url: str) -> bool:
        """Check whether the current thumbnail was downloaded from ``image_url``."""
        pattern = (
            f"  {escape_uri(product_uri)} veeakker:thumbnail ?file .\n"
            f"  ?file dct:source {escape_uri(image_url)} ."
        )
        return await self.store.ask(with_prefixes(f"ASK {{\n{in_graph(self.graph, pattern)}\n}}"))

    async def has_thumbnail(self, product_uri: str) -> bool:
        pattern = f"  {escape_uri(product_uri)} veeakker:thumbnail ?file ."
        return await self.store.ask(with_prefixes(f"ASK {{\n{in_graph(self.graph, pattern)}\n}}"))

    async def ensure_picture(self, product_uri: str, image_url: str | None) -> PictureOutcome:
        """
        Converge the thumbnail of a product.

        Args:
            product_uri: URI of the product
            image_url: Image URL of the payload, None when it has none

        Returns:
            What happened to the thumbnail
        """
        if image_url:
            if await self.has_picture(product_uri, image_url):
                logger.debug(f"Thumbnail of {product_uri} is up to date")
                return PictureOutcome.UNCHANGED
        elif not await self.has_thumbnail(product_uri):
            return PictureOutcome.ABSENT

        await self.remove_picture(product_uri)
        if not image_url:
            logger.info(f"Removed thumbnail of {product_uri}")
            return PictureOutcome.REMOVED

        await self.add_picture(product_uri, image_url)
        return PictureOutcome.REPLACED

    async def remove_picture(self, product_uri: str) -> None:
        """Delete the thumbnail pair of a product and the thumbnail edge."""
        product = escape_uri(product_uri)
        thumbnail = f"  {product} veeakker:thumbnail ?file ."
        share_binding = f"{thumbnail}\n  ?share nie:dataSource ?file ."

        await self.store.update(
            with_prefixes(
                delete_property_values("?share", FILE_PREDICATES, self.graph, share_binding),
                delete_property_values("?file", FILE_PREDICATES, self.graph, thumbnail),
                f"DELETE {{\n{in_graph(self.graph, thumbnail)}\n}}\n"
                f"WHERE {{\n{in_graph(self.graph, thumbnail)}\n}}",
            )
        )

    async def add_picture(self, product_uri: str, image_url: str) -> None:
        """
        Download an image to the share directory and link it as thumbnail.

        Download and storage errors propagate.
        """
        download = await self.client.download_file(image_url)

        filename = filename_from_url(image_url)
        mime_type = detect_mime_type(download.content, filename, download.content_type)
        extension = extension_from_url(image_url) or extension_for_mime(mime_type)

        file_uuid = self.id_factory()
        share_uuid = self.id_factory()
        stored = self.storage.save(f"{share_uuid}.{extension}", download.content, mime_type)
        file_uri = f"{UriBase.FILE}{file_uuid}"
        share_uri = f"{UriBase.SHARE}{stored.filename}"

        metadata = [
            ("nfo:fileName", escape_string(filename)),
            ("dct:format", escape_string(mime_type)),
            ("nfo:fileSize", escape_int(stored.size_bytes)),
            ("dbpedia:fileExtension", escape_string(extension)),
            ("dct:created", escape_datetime(self.clock())),
        ]
        file_node = triples_block(
            escape_uri(file_uri),
            [
                ("a", "nfo:FileDataObject"),
                ("mu:uuid", escape_string(file_uuid)),
                ("dct:source", escape_uri(image_url)),
                *metadata,
            ],
        )
        share_node = triples_block(
            escape_uri(share_uri),
            [
                ("a", "nfo:FileDataObject"),
                ("mu:uuid", escape_string(share_uuid)),
                ("nie:dataSource", escape_uri(file_uri)),
                *metadata,
            ],
        )
        edge = triples_block(escape_uri(product_uri), [("veeakker:thumbnail", escape_uri(file_uri))])

        await self.store.update(with_prefixes(insert_data(self.graph, edge, file_node, share_node)))
        logger.info(f"Stored thumbnail {share_uri} ({stored.size_bytes} bytes) for {product_uri}")
