"""
Flask routes for the Plaque Preview service
Render a plaque preview, then fetch it inline or as a download
"""

import io
import re

from flask import Blueprint, current_app, jsonify, request, send_file
from loguru import logger

from .errors import PlaquePreviewError, PreviewNotFoundError, RenderError, ValidationError


bp = Blueprint('preview', __name__, url_prefix='/api/preview')


def get_preview_service():
    return current_app.extensions['preview_service']


def download_filename(team_name: str, extension: str = 'png') -> str:
    """roster-frame-<team-name-lowercased-and-hyphenated>-preview.<ext>"""
    slug = re.sub(r'\s+', '-', (team_name or 'team').strip().lower()) or 'team'
    return f"roster-frame-{slug}-preview.{extension}"


def error_response(error: PlaquePreviewError):
    body = {'error': error.message}
    body.update(error.to_dict())
    return jsonify(body), error.status_code


@bp.route('/generate', methods=['POST'])
def generate():
    """Render and store a preview from a plaque configuration"""
    payload = request.get_json(silent=True)

    try:
        preview = get_preview_service().generate(payload)
        return jsonify(preview.to_wire())

    except ValidationError as e:
        logger.warning(f"Rejected preview request: {e.message} {e.details}")
        return error_response(e)

    except RenderError as e:
        logger.error(f"Preview render failed: {e.message} {e.details}")
        return error_response(e)

    except Exception as e:
        logger.exception(f"Unexpected error generating preview: {e}")
        return jsonify({'error': 'Failed to generate preview'}), 500


@bp.route('/<preview_id>', methods=['GET'])
def get_preview(preview_id):
    """Return the stored preview record"""
    try:
        preview = get_preview_service().get(preview_id)
        return jsonify(preview.to_wire())
    except PreviewNotFoundError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Failed to read preview {preview_id}: {e}")
        return jsonify({'error': 'Failed to read preview'}), 500


@bp.route('/<preview_id>/image', methods=['GET'])
def preview_image(preview_id):
    """Serve preview bytes for inline display"""
    try:
        preview, image_bytes = get_preview_service().get_image(preview_id)
    except PreviewNotFoundError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Failed to read preview {preview_id}: {e}")
        return jsonify({'error': 'Failed to read preview'}), 500

    response = send_file(io.BytesIO(image_bytes), mimetype=preview.content_type)
    response.headers['Cache-Control'] = 'public, max-age=31536000'
    return response


@bp.route('/<preview_id>/download', methods=['GET'])
def download_preview(preview_id):
    """Serve preview bytes as an attachment named after the team"""
    try:
        preview, image_bytes = get_preview_service().get_image(preview_id)
    except PreviewNotFoundError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Failed to read preview {preview_id}: {e}")
        return jsonify({'error': 'Failed to read preview'}), 500

    extension = 'jpg' if preview.content_type == 'image/jpeg' else 'png'
    return send_file(
        io.BytesIO(image_bytes),
        mimetype=preview.content_type,
        as_attachment=True,
        download_name=download_filename(preview.team_name, extension),
    )
