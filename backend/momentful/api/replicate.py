from __future__ import annotations
"""Replicate prediction endpoints.

POST creates a prediction (image credit + input validation + storage-path
signing); GET returns the prediction and, once it succeeds, stores the edited
image for the project.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from momentful.api.deps import debug_details, normalize_provider_error
from momentful.errors import ApiError, ProviderHTTPError
from momentful.services import generation_limits, records
from momentful.services.poller import extract_output_url
from momentful.services.providers import replicate
from momentful.services.signed_urls import convert_storage_paths_to_signed_urls
from momentful.services.storage import USER_UPLOADS_BUCKET, upload_from_external_url
from momentful.services.validation import validate_prediction_input

logger = logging.getLogger(__name__)

router = APIRouter()

EDITED_IMAGE_AI_MODEL = "flux-pro"
PAYMENT_REQUIRED_TITLE = "Monthly spend limit reached"
PAYMENT_REQUIRED_DETAIL = "Payment required. Please check your account billing settings."


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@router.post("/predictions", status_code=201)
async def create_prediction(body: dict[str, Any] = Body(...)):
    """Start a Replicate prediction."""
    version = body.get("version")
    model_input = body.get("input")
    user_id = body.get("userId")
    project_id = body.get("projectId")
    prompt = body.get("prompt")

    if not version or not model_input:
        raise ApiError(400, "Missing required fields: version and input")

    if user_id:
        await generation_limits.consume_credit(user_id, "image")

    validation = validate_prediction_input(version, model_input)
    if not validation.valid:
        logger.warning("Replicate input validation failed: %s", validation.error)
        raise ApiError(400, "Invalid input format", details=validation.error)

    converted = await convert_storage_paths_to_signed_urls(model_input)

    try:
        prediction = await replicate.create_prediction(version, converted)
    except ProviderHTTPError as e:
        logger.error("Replicate API error: %s", e)
        if e.status_code == 402:
            return JSONResponse(
                status_code=402,
                content={
                    "error": "Payment Required",
                    "title": e.title or PAYMENT_REQUIRED_TITLE,
                    "detail": e.detail or PAYMENT_REQUIRED_DETAIL,
                    "status": 402,
                },
            )
        raise normalize_provider_error(e, "Failed to create prediction", forward_status=True)
    except Exception as e:
        logger.error("Replicate prediction error: %s", e)
        raise ApiError(500, "Failed to create prediction", details=debug_details(e))

    response: dict[str, Any] = dict(prediction)
    if user_id and project_id and prompt:
        response["metadata"] = {"userId": user_id, "projectId": project_id, "prompt": prompt}
    return response


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

async def _store_edited_image(
    prediction: dict[str, Any],
    *,
    user_id: str,
    project_id: str,
    prompt: str,
    lineage_id: str | None,
    parent_id: str | None,
) -> dict[str, Any]:
    output_url = extract_output_url(prediction.get("output"))
    if not output_url:
        return {}

    try:
        upload = await upload_from_external_url(
            USER_UPLOADS_BUCKET, output_url, user_id, project_id, "image",
        )
    except Exception as e:
        logger.error("Failed to upload edited image for prediction %s: %s", prediction.get("id"), e)
        return {"uploadError": str(e)}

    result: dict[str, Any] = {
        "storagePath": upload.storage_path,
        "width": upload.width,
        "height": upload.height,
    }
    # A failed insert leaves editedImageId unset; the upload still stands.
    try:
        row = await records.create_edited_image({
            "project_id": project_id,
            "user_id": user_id,
            "prompt": prompt,
            "context": {"productName": prompt},
            "ai_model": EDITED_IMAGE_AI_MODEL,
            "storage_path": upload.storage_path,
            "width": upload.width or 0,
            "height": upload.height or 0,
            "lineage_id": lineage_id,
            "parent_id": parent_id,
        })
    except Exception as e:
        logger.error("Failed to create edited image record for prediction %s: %s", prediction.get("id"), e)
    else:
        if row:
            result["editedImageId"] = row.get("id")
    return result


@router.get("/predictions/{prediction_id}")
async def get_prediction(
    prediction_id: str,
    user_id: str | None = Query(None, alias="userId"),
    project_id: str | None = Query(None, alias="projectId"),
    prompt: str | None = Query(None),
    lineage_id: str | None = Query(None, alias="lineageId"),
    parent_id: str | None = Query(None, alias="parentId"),
):
    """Return the prediction; persist its output once it has succeeded."""
    try:
        prediction = await replicate.get_prediction(prediction_id)
    except ProviderHTTPError as e:
        logger.error("Replicate status error for %s: %s", prediction_id, e)
        raise normalize_provider_error(e, "Failed to get prediction", forward_status=True)
    except Exception as e:
        logger.error("Replicate status error for %s: %s", prediction_id, e)
        raise ApiError(500, "Failed to get prediction", details=debug_details(e))

    if prediction.get("error"):
        return JSONResponse(status_code=500, content={"detail": prediction["error"]})

    if prediction.get("status") == "succeeded" and user_id and project_id and prompt:
        prediction = {
            **prediction,
            **await _store_edited_image(
                prediction,
                user_id=user_id,
                project_id=project_id,
                prompt=prompt,
                lineage_id=lineage_id,
                parent_id=parent_id,
            ),
        }

    return prediction
