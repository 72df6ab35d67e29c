"""Asset API routes of a document."""
from urllib.parse import quote

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse

from webstrate_assets.api.deps import Assets, Context, CurrentUserId
from webstrate_assets.exceptions import PermissionDeniedError
from webstrate_assets.schemas.asset import (
    AssetSummary,
    AssetTeardownResponse,
    CopyAssetsRequest,
    RestoreAssetsRequest,
)
from webstrate_assets.services.asset_service import IncomingFile
from webstrate_assets.utils.rate_limiter import rate_limit_upload

router = APIRouter()


def _content_disposition(filename: str, inline: bool) -> str:
    # RFC 5987 filename* supports UTF-8 names.
    quoted = quote(filename)
    disp = "inline" if inline else "attachment"
    return f"{disp}; filename*=UTF-8''{quoted}"


@router.post(
    "",
    response_model=AssetSummary | list[AssetSummary],
    response_model_exclude_none=True,
)
@rate_limit_upload()
async def upload_assets(
    request: Request,
    webstrate_id: str,
    assets: Assets,
    context: Context,
    user_id: CurrentUserId,
    files: list[UploadFile] = File(...),
    searchable: list[str] | None = Form(None),
):
    """Upload one or more files. A single upload returns a single asset."""
    if not await context.documents.can_write(user_id, webstrate_id):
        raise PermissionDeniedError("Insufficient permissions.")

    incoming = [
        IncomingFile(
            original_name=file.filename or "file",
            content=await file.read(),
            mime_type=file.content_type or "application/octet-stream",
        )
        for file in files
    ]
    client_host = request.client.host if request.client else "unknown"
    summaries = await assets.upload_assets(
        webstrate_id,
        incoming,
        searchable,
        source=f"{user_id} ({client_host})",
    )
    return summaries[0] if len(summaries) == 1 else summaries


@router.get("", response_model=list[AssetSummary], response_model_exclude_none=True)
async def list_assets(
    webstrate_id: str,
    assets: Assets,
    current: bool = Query(False),
):
    """List every asset record, or only those visible at the latest version."""
    if current:
        return await assets.get_current_assets(webstrate_id)
    return await assets.get_assets(webstrate_id)


@router.delete("", response_model=AssetTeardownResponse)
async def delete_all_assets(webstrate_id: str, assets: Assets):
    """Delete all assets of a document that is being deleted."""
    return AssetTeardownResponse(**await assets.delete_assets(webstrate_id))


@router.post("/copy", response_model=list[AssetSummary], response_model_exclude_none=True)
async def copy_assets(webstrate_id: str, body: CopyAssetsRequest, assets: Assets):
    """Copy assets visible at a version into a newly prototyped document."""
    copies = await assets.copy_assets(webstrate_id, body.to_webstrate_id, body.version)
    return [AssetSummary.from_record(record) for record in copies]


@router.post("/restore", response_model=list[AssetSummary], response_model_exclude_none=True)
async def restore_assets(webstrate_id: str, body: RestoreAssetsRequest, assets: Assets):
    """Restore the assets of an older version or tag as the newest version."""
    restored = await assets.restore_assets(
        webstrate_id,
        new_version=body.new_version,
        version=body.version,
        tag=body.tag,
    )
    return [AssetSummary.from_record(record) for record in restored]


@router.get("/{asset_name}", response_model=AssetSummary, response_model_exclude_none=True)
async def get_asset(
    webstrate_id: str,
    asset_name: str,
    assets: Assets,
    v: int | None = Query(None, ge=0),
):
    """Get asset details at a version (latest when omitted)."""
    record = await assets.get_asset(webstrate_id, asset_name, v)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    return AssetSummary.from_record(record)


@router.get("/{asset_name}/download")
async def download_asset(
    webstrate_id: str,
    asset_name: str,
    assets: Assets,
    context: Context,
    v: int | None = Query(None, ge=0),
    inline: bool = Query(True),
):
    """Serve the bytes of an asset at a version (latest when omitted)."""
    record = await assets.get_asset(webstrate_id, asset_name, v)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")

    full_path = context.storage.get_absolute_path(record.file_name)
    if not full_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    return FileResponse(
        full_path,
        media_type=record.mime_type,
        headers={"Content-Disposition": _content_disposition(asset_name, inline=inline)},
    )


@router.delete("/{asset_name}", response_model=AssetSummary, response_model_exclude_none=True)
async def mark_asset_deleted(webstrate_id: str, asset_name: str, assets: Assets):
    """Mark an asset as deleted from the document's current version on."""
    record = await assets.mark_as_deleted(webstrate_id, asset_name)
    return AssetSummary.from_record(record)
