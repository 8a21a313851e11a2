"""
API Blueprint - document metadata CRUD
"""
from flask import Blueprint, current_app, jsonify, request

from camnote import db
from camnote.models import Document, new_document, parse_document_payload

api_bp = Blueprint('api', __name__)


def _server_error(message: str):
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": message}), 500


# ============ API Routes ============

@api_bp.route("/api/documents", methods=["GET"])
def list_documents():
    try:
        docs = Document.query.order_by(Document.created_at.desc()).all()
        return jsonify([d.to_dict() for d in docs]), 200
    except Exception:
        return _server_error("Failed to fetch documents")


@api_bp.route("/api/documents/<doc_id>", methods=["GET"])
def get_document(doc_id):
    try:
        doc = db.session.get(Document, doc_id)
        if not doc:
            return jsonify({"error": "Document not found"}), 404
        return jsonify(doc.to_dict()), 200
    except Exception:
        return _server_error("Failed to fetch document")


@api_bp.route("/api/documents", methods=["POST"])
def create_document():
    payload = request.get_json(silent=True)
    fields, err = parse_document_payload(payload)
    if err:
        return jsonify({"error": "Invalid document data", "detail": err}), 400
    try:
        doc = new_document(fields)
        db.session.add(doc)
        db.session.commit()
        current_app.logger.info(f"Created document {doc.id}")
        return jsonify(doc.to_dict()), 201
    except Exception:
        return _server_error("Failed to create document")


@api_bp.route("/api/documents/<doc_id>", methods=["PUT"])
def update_document(doc_id):
    payload = request.get_json(silent=True)
    fields, err = parse_document_payload(payload, partial=True)
    if err:
        return jsonify({"error": err}), 400
    try:
        doc = db.session.get(Document, doc_id)
        if not doc:
            return jsonify({"error": "Document not found"}), 404
        doc.update_from_dict(fields)
        db.session.commit()
        return jsonify(doc.to_dict()), 200
    except Exception:
        return _server_error("Failed to update document")


@api_bp.route("/api/documents/<doc_id>", methods=["DELETE"])
def delete_document(doc_id):
    try:
        doc = db.session.get(Document, doc_id)
        if not doc:
            return jsonify({"error": "Document not found"}), 404
        db.session.delete(doc)
        db.session.commit()
        current_app.logger.info(f"Deleted document {doc_id}")
        return jsonify({"success": True}), 200
    except Exception:
        return _server_error("Failed to delete document")
