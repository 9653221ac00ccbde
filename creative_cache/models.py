"""Data models for campaigns, cached assets and download sessions."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class AssetRecord(BaseModel):
    """A generated image stored on a campaign row."""

    model_config = ConfigDict(extra="allow")

    prompt: str | None = Field(default=None, description="Prompt used to generate the image")
    url: str | None = Field(default=None, description="Location of the binary asset")
    reused: bool | None = Field(default=None, description="True if copied from an earlier campaign")
    source_campaign: str | None = Field(default=None, description="Campaign the asset was reused from")
    similarity_score: float | None = Field(default=None, description="Score that justified the reuse")

    @property
    def is_usable(self) -> bool:
        """Failed generations have no URL and are never matched or reused."""
        return bool(self.prompt) and bool(self.url)


class CampaignRecord(BaseModel):
    """Campaign row as held by the datastore."""

    id: str = Field(..., description="Campaign ID")
    campaign_prompt: str | None = Field(default=None, description="Prompt the campaign was created from")
    generated_images: list[AssetRecord] = Field(default_factory=list, description="Generated images")
    generated_video_url: str | None = Field(default=None, description="Generated video URL")
    created_at: datetime = Field(..., description="Campaign creation time (UTC)")


class SimilarityMatch(BaseModel):
    """One candidate prompt matched against one stored asset."""

    original_prompt: str = Field(..., description="Candidate prompt as supplied by the caller")
    similar_prompt: str = Field(..., description="Prompt of the stored asset")
    similarity_score: float = Field(..., ge=0.0, le=1.0, description="Dice score (0-1)")
    asset_url: str = Field(..., description="URL of the stored asset")
    source_campaign: str = Field(..., description="Campaign owning the stored asset")
    created_at: datetime = Field(..., description="Creation time of the owning campaign")


class AssetMapping(BaseModel):
    """Instruction to reuse an existing asset for a new prompt."""

    new_prompt: str = Field(..., description="Prompt the asset now stands in for")
    existing_url: str = Field(..., min_length=1, description="URL of the asset being reused")
    source_campaign: str | None = Field(default=None, description="Campaign the asset comes from")
    similarity_score: float | None = Field(default=None, description="Score of the match")


class CleanupResult(BaseModel):
    """Outcome of an asset cleanup sweep."""

    deleted_count: int = Field(default=0, description="Objects actually deleted")
    deleted_assets: list[str] = Field(default_factory=list, description="Storage paths deleted")
    failed_assets: list[str] = Field(default_factory=list, description="Storage paths that could not be deleted")


class AssetStats(BaseModel):
    """Aggregate statistics over all campaigns."""

    total_campaigns: int = Field(default=0)
    total_images: int = Field(default=0)
    total_videos: int = Field(default=0)
    avg_images_per_campaign: float = Field(default=0, description="0 when there are no campaigns")
    storage_usage_mb: int = Field(default=0, description="Rough storage estimate in MB")


# Campaign bundle (download session payload)


class BundleImage(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt: str | None = None
    url: str | None = None


class VideoScript(BaseModel):
    model_config = ConfigDict(extra="allow")

    platform: str | None = None
    script: str = ""


class EmailCopy(BaseModel):
    model_config = ConfigDict(extra="allow")

    subject: str = ""
    body: str = ""


class BannerAd(BaseModel):
    model_config = ConfigDict(extra="allow")

    headline: str = ""
    cta: str = ""


class LandingPageConcept(BaseModel):
    model_config = ConfigDict(extra="allow")

    hero_text: str = ""
    sub_text: str = ""
    cta: str = ""


class CampaignBundle(BaseModel):
    """Content bundle shared through a download session."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    generated_images: list[BundleImage] = Field(default_factory=list, description="Generated images")
    uploaded_image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("uploaded_image_url", "uploadedImageUrl"),
        description="Product photo the campaign was generated from",
    )
    video_scripts: list[VideoScript] = Field(default_factory=list, description="Video scripts per platform")
    email_copy: EmailCopy | None = Field(default=None, description="Email subject and body")
    banner_ads: list[BannerAd] = Field(default_factory=list, description="Banner ad copy")
    landing_page_concept: LandingPageConcept | None = Field(default=None, description="Landing page copy")


class DownloadSession(BaseModel):
    """Short-lived pointer to a campaign bundle."""

    session_token: str = Field(..., description="Opaque random token")
    campaign_data: dict = Field(..., description="Bundle payload as stored")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    expires_at: datetime = Field(..., description="Expiry time (UTC)")

    @model_validator(mode="after")
    def _check_expiry(self) -> "DownloadSession":
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")
        return self

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at
