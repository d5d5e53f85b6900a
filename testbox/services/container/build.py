"""Building throwaway images from a Dockerfile."""

from typing import Dict, Optional

import structlog

from ...core.client import DockerClient
from ...models.errors import BuildVerificationError
from ...models.image import ImageReference
from ...utils.id_generator import RandomUuid, Uuid
from .generic import GenericContainer

logger = structlog.get_logger(__name__)


class GenericContainerBuilder:
    """Builds an image from a context directory and returns a GenericContainer for it.

    The image gets a random name and tag so concurrent builds never collide.
    """

    def __init__(
        self,
        context: str,
        *,
        client: DockerClient,
        uuid: Optional[Uuid] = None,
    ):
        """Initialize the builder.

        Args:
            context: Build context directory containing a Dockerfile
            client: Docker client used for the build and the resulting container
            uuid: Source of the generated image name and tag
        """
        self.context = context
        self._client = client
        self._uuid = uuid or RandomUuid()
        self._build_args: Dict[str, str] = {}

    def with_build_arg(self, key: str, value: str) -> "GenericContainerBuilder":
        self._build_args[key] = value
        return self

    async def build(self) -> GenericContainer:
        """Build the image and verify it is available locally.

        Returns:
            GenericContainer for the built image

        Raises:
            CollaboratorError: If the build fails
            BuildVerificationError: If the built image is not listed afterwards
        """
        image = ImageReference(self._uuid.next_uuid(), self._uuid.next_uuid())

        await self._client.build_image(image, self.context, dict(self._build_args))
        container = GenericContainer(image.name, image.tag, client=self._client)

        if not await container.has_image_locally():
            logger.error("Built image not found locally", image=str(image), context=self.context)
            raise BuildVerificationError(image)

        logger.info("Image built", image=str(image), context=self.context)
        return container
