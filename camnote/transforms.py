"""
Transform Blueprint - upload an image (or several), get a derived file back.

Each handler runs inside an UploadScope: uploads are written to UPLOAD_FOLDER
and removed again on every exit path. Client mistakes come back as 400 with
a readable message; anything else is logged and reported as a fixed 500.
"""
import io
import re
from functools import wraps
from typing import Optional

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.exceptions import HTTPException

from camnote.errors import PipelineError, UnsupportedImageFormat, ValidationError
from camnote.services import export_service, imaging, ocr_service, pdf_service
from camnote.uploads import UploadScope

transforms_bp = Blueprint('transforms', __name__)

DEFAULT_TITLE = "Untitled Document"
PROTECTED_TITLE = "Protected Document"
MERGED_TITLE = "Merged Document"
SIGNED_TITLE = "Signed Document"
FILTERED_TITLE = "Filtered Document"

LANGUAGE_RE = re.compile(r"^[A-Za-z_]+(\+[A-Za-z_]+)*$")


# ============ Helper Functions ============

def derive_filename(title: Optional[str], default: str, extension: str, suffix: str = "") -> str:
    """Title with whitespace runs replaced by underscores, or the default."""
    base = re.sub(r"[\\/]", "", (title or "").strip())
    base = re.sub(r"\s+", "_", base) or re.sub(r"\s+", "_", default)
    return f"{base}{suffix}{extension}"


def send_artifact(data: bytes, mimetype: str, filename: str):
    return send_file(io.BytesIO(data), mimetype=mimetype, as_attachment=True, download_name=filename)


def _form_title() -> str:
    return (request.form.get("title") or "").strip()


def _form_int(name: str, default: int) -> int:
    raw = (request.form.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(round(float(raw)))
    except (ValueError, OverflowError):
        raise ValidationError(f"{name} must be a number")


def _ocr_language() -> str:
    language = (request.form.get("language") or current_app.config["OCR_LANGUAGE"]).strip()
    if not LANGUAGE_RE.match(language):
        raise ValidationError("Invalid OCR language")
    return language


def _extract_text(uploads):
    asset = uploads.require(request.files, "image")
    language = _ocr_language()
    image = imaging.normalize(asset.read_bytes())
    return ocr_service.extract(image, language=language, timeout=current_app.config["OCR_TIMEOUT_SECONDS"])


def transform_endpoint(prefix: str, failure_message: str):
    """Run the view inside an UploadScope and map failures to JSON errors"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                with UploadScope(current_app.config["UPLOAD_FOLDER"], prefix) as uploads:
                    return f(uploads, *args, **kwargs)
            except HTTPException:
                raise
            except PipelineError as e:
                if e.status_code < 500:
                    current_app.logger.info(f"{request.path} rejected: {e.message}")
                    return jsonify({"error": e.message}), e.status_code
                current_app.logger.exception(f"{request.path} failed: {e.message}")
                return jsonify({"error": failure_message}), 500
            except Exception as e:
                current_app.logger.exception(f"{request.path} failed: {type(e).__name__}")
                return jsonify({"error": failure_message}), 500
        return decorated_function
    return decorator


# ============ API Routes ============

@transforms_bp.route("/api/ocr", methods=["POST"])
@transform_endpoint("ocr", "Failed to extract text")
def ocr(uploads):
    result = _extract_text(uploads)
    return jsonify(result.to_dict()), 200


@transforms_bp.route("/api/signature", methods=["POST"])
@transform_endpoint("signature", "Failed to apply signature")
def signature(uploads):
    cfg = current_app.config
    document = uploads.require(request.files, "document")
    mark = uploads.require(request.files, "signature")
    placement = imaging.OverlayPlacement(
        x=_form_int("x", cfg["SIGNATURE_DEFAULT_X"]),
        y=_form_int("y", cfg["SIGNATURE_DEFAULT_Y"]),
        width=_form_int("width", cfg["SIGNATURE_DEFAULT_WIDTH"]),
        height=_form_int("height", cfg["SIGNATURE_DEFAULT_HEIGHT"]),
    )

    base = imaging.normalize(document.read_bytes())
    signed = imaging.overlay(base, mark.read_bytes(), placement, max_side=cfg["SIGNATURE_MAX_SIDE"])
    return send_artifact(signed, "image/png", derive_filename(_form_title(), SIGNED_TITLE, ".png"))


@transforms_bp.route("/api/pdf/protect", methods=["POST"])
@transform_endpoint("protect", "Failed to create protected PDF")
def protect_pdf(uploads):
    min_length = current_app.config["MIN_PASSWORD_LENGTH"]
    password = request.form.get("password") or ""
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    document = uploads.require(request.files, "document")
    title = _form_title()

    page = imaging.normalize(document.read_bytes())
    pdf = pdf_service.compose([page], title=title or PROTECTED_TITLE, creator=current_app.config["PDF_CREATOR"])
    protected = pdf_service.protect(pdf, password)
    filename = derive_filename(title, PROTECTED_TITLE, ".pdf", suffix="_protected")
    return send_artifact(protected, "application/pdf", filename)


@transforms_bp.route("/api/pdf/merge", methods=["POST"])
@transform_endpoint("merge", "Failed to merge documents")
def merge_pdf(uploads):
    assets = uploads.require_many(
        request.files, "documents", minimum=2,
        message="At least 2 documents are required to merge",
    )
    title = _form_title()

    # strictly sequential so page order follows upload order
    pages = []
    for index, asset in enumerate(assets, start=1):
        try:
            pages.append(imaging.normalize(asset.read_bytes()))
        except UnsupportedImageFormat:
            current_app.logger.warning(f"Merge: skipping page {index} ({asset.original_name}), not a readable image")

    pdf = pdf_service.compose(pages, title=title or MERGED_TITLE, creator=current_app.config["PDF_CREATOR"])
    return send_artifact(pdf, "application/pdf", derive_filename(title, MERGED_TITLE, ".pdf"))


@transforms_bp.route("/api/export/<fmt>", methods=["POST"])
@transform_endpoint("export", "Failed to export document")
def export_text(uploads, fmt):
    exporter = export_service.EXPORTERS.get((fmt or "").lower())
    if exporter is None:
        return jsonify({"error": f"Unsupported export format: {fmt}"}), 404
    result = _extract_text(uploads)
    artifact = exporter(result.text)
    filename = derive_filename(_form_title(), DEFAULT_TITLE, artifact.extension)
    return send_artifact(artifact.data, artifact.content_type, filename)


@transforms_bp.route("/api/filter", methods=["POST"])
@transform_endpoint("filter", "Failed to apply filter")
def filter_image(uploads):
    name = (request.form.get("filter") or "clean").strip().lower()
    if name not in imaging.FILTERS:
        raise ValidationError(f"Unknown filter: {name}")
    asset = uploads.require(request.files, "image")

    result = imaging.apply_filter(asset.read_bytes(), name)
    filename = derive_filename(_form_title(), FILTERED_TITLE, result.extension)
    return send_artifact(result.data, result.mimetype, filename)
