"""Download archive builder for campaign bundles."""

import io
import logging
import zipfile
from typing import Any, List, Mapping, Tuple
from urllib.parse import urlparse

import httpx

from creative_cache.constants import UPLOADED_IMAGE_FILENAME
from creative_cache.models import CampaignBundle
from creative_cache.utils.batch import run_isolated, successes
from creative_cache.utils.retry import download_retry

logger = logging.getLogger(__name__)


class ArchiveBuilder:
    """Packages a bundle's images and copy into a ZIP archive."""

    def __init__(self, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        """
        Initialize HTTP client for image downloads.

        Args:
            timeout: Per-download timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.client = httpx.Client(timeout=timeout, follow_redirects=True, transport=transport)

    def close(self) -> None:
        self.client.close()

    def build(self, bundle: CampaignBundle | Mapping[str, Any]) -> bytes:
        """
        Build a ZIP archive for a bundle.

        Images that cannot be downloaded are left out; the text files are
        always included.

        Args:
            bundle: CampaignBundle or equivalent mapping

        Returns:
            ZIP archive bytes
        """
        if not isinstance(bundle, CampaignBundle):
            bundle = CampaignBundle.model_validate(bundle)

        outcomes = run_isolated(
            self._image_sources(bundle),
            lambda source: self._download(source[0]),
            describe=lambda source: f"image {source[0]}",
        )

        downloaded = successes(outcomes)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for outcome in downloaded:
                archive.writestr(outcome.item[1], outcome.value)

            for filename, content in self.text_files(bundle):
                archive.writestr(filename, content)

        logger.info(f"Built archive with {len(downloaded)}/{len(outcomes)} images")
        return buffer.getvalue()

    def text_files(self, bundle: CampaignBundle) -> List[Tuple[str, str]]:
        """Render the bundle's copy as (filename, content) pairs."""
        files = []

        used = set()
        for index, script in enumerate(bundle.video_scripts, start=1):
            name = f"video-script-{script.platform or index}.txt"
            if name in used:
                # Repeated platform
                name = f"video-script-{script.platform}-{index}.txt"
            used.add(name)
            files.append((
                name,
                f"Platform: {script.platform or ''}\n\n{script.script}",
            ))

        if bundle.email_copy:
            files.append((
                "email-copy.txt",
                f"Subject: {bundle.email_copy.subject}\n\n{bundle.email_copy.body}",
            ))

        for index, ad in enumerate(bundle.banner_ads, start=1):
            files.append((f"banner-ad-{index}.txt", f"Headline: {ad.headline}\nCTA: {ad.cta}"))

        if bundle.landing_page_concept:
            concept = bundle.landing_page_concept
            files.append((
                "landing-page-concept.txt",
                f"Hero Text: {concept.hero_text}\nSub Text: {concept.sub_text}\nCTA: {concept.cta}",
            ))

        return files

    def _image_sources(self, bundle: CampaignBundle) -> List[Tuple[str, str]]:
        sources = []
        if bundle.uploaded_image_url:
            sources.append((bundle.uploaded_image_url, UPLOADED_IMAGE_FILENAME))

        for index, image in enumerate(bundle.generated_images, start=1):
            if image.url:
                sources.append((image.url, f"generated-image-{index}.{self._extension(image.url)}"))
        return sources

    @download_retry
    def _download(self, url: str) -> bytes:
        response = self.client.get(url)
        response.raise_for_status()
        return response.content

    @staticmethod
    def _extension(url: str) -> str:
        name = urlparse(url).path.rsplit("/", 1)[-1]
        if "." in name:
            return name.rsplit(".", 1)[-1] or "jpg"
        return "jpg"
