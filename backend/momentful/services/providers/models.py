"""Model identifiers and capability tables for all generation providers."""

from __future__ import annotations


class ReplicateModels:
    STABLE_DIFFUSION = (
        "stability-ai/stable-diffusion:"
        "db21e45d3f7023abc2a46ee38a23973f6dce16bb082a930b0c49861f96d1e5bf"
    )
    STABLE_VIDEO_DIFFUSION = (
        "stability-ai/stable-video-diffusion:"
        "3f0455e4619daac51287dedb1a3f5dbe6bc8d0a1e6e715b9a49c7d61b7c1b8a8"
    )
    # image-to-image editing
    FLUX_PRO = "black-forest-labs/flux-kontext-pro"


class RunwayModels:
    # video
    VEO_3_1_FAST = "veo3.1_fast"
    GEN4_TURBO = "gen4_turbo"
    GEN4_ALEPH = "gen4_aleph"
    UPSCALE_V1 = "upscale_v1"
    ACT_TWO = "act_two"

    # image
    GEN_4_IMAGE = "gen4_image"
    GEN_4_IMAGE_TURBO = "gen4_image_turbo"
    GEMINI_2_5_FLASH = "gemini_2.5_flash"


def is_flux_model(model: str) -> bool:
    return model == ReplicateModels.FLUX_PRO or "flux-kontext-pro" in model


SUPPORTED_IMAGE_MODELS: frozenset[str] = frozenset({
    RunwayModels.GEN_4_IMAGE,
    RunwayModels.GEN_4_IMAGE_TURBO,
    RunwayModels.GEMINI_2_5_FLASH,
})

SUPPORTED_IMAGE_RATIOS: frozenset[str] = frozenset({
    "1920:1080", "1080:1920", "1024:1024", "1360:768", "1080:1080",
    "1168:880", "1440:1080", "1080:1440", "1808:768", "2112:912",
    "1280:720", "720:1280", "720:720", "960:720", "720:960",
    "1680:720", "1344:768", "768:1344", "1184:864", "864:1184",
    "1536:672",
    # gemini_2.5_flash sizes
    "832x1248", "1248x832", "896x1152", "1152x896",
})

DEFAULT_IMAGE_MODEL = RunwayModels.GEN_4_IMAGE
DEFAULT_IMAGE_RATIO = "1280:720"
DEFAULT_VIDEO_MODEL = RunwayModels.VEO_3_1_FAST
DEFAULT_VIDEO_RATIO = "1280:720"
DEFAULT_VIDEO_DURATION = 4
