from flask import current_app, jsonify, request

from handbook.blueprints import bool_arg, int_arg, json_body
from handbook.blueprints.chapters import chapters_bp
from handbook.services.chapter_renamer import ChapterRenamer
from handbook.services.chapter_service import ChapterService
from handbook.services.section_service import SectionService


section_service = SectionService()


def _chapter_service():
    renamer = ChapterRenamer(run_logs_path=current_app.config.get("STORAGE_RUN_LOGS_PATH"))
    return ChapterService(renamer=renamer)


@chapters_bp.route("", methods=["POST"])
def create_chapter():
    chapter = _chapter_service().create_chapter(json_body())
    return jsonify(chapter.to_dict()), 201


@chapters_bp.route("", methods=["GET"])
def list_chapters():
    result = _chapter_service().list_chapters(
        publish_status=request.args.get("status"),
        province=request.args.get("province"),
        order_by=request.args.get("orderBy", "order"),
        order=request.args.get("order", "asc"),
        page=int_arg("page", 1),
        per_page=int_arg("limit", 20),
    )
    return jsonify({
        "data": [c.to_dict() for c in result["data"]],
        "pagination": result["pagination"],
    }), 200


@chapters_bp.route("/batch", methods=["PUT"])
def batch_update_status():
    data = json_body()
    chapters = _chapter_service().batch_update_status(data.get("chapter_ids"), data.get("publish_status"))
    return jsonify({"updatedCount": len(chapters), "chapters": [c.to_dict() for c in chapters]}), 200


@chapters_bp.route("/<chapter_id>", methods=["GET"])
def get_chapter(chapter_id):
    return jsonify(_chapter_service().describe_chapter(chapter_id)), 200


@chapters_bp.route("/<chapter_id>", methods=["PUT"])
def update_chapter(chapter_id):
    chapter = _chapter_service().update_chapter(chapter_id, json_body())
    return jsonify(chapter.to_dict()), 200


@chapters_bp.route("/<chapter_id>", methods=["DELETE"])
def delete_chapter(chapter_id):
    return jsonify(_chapter_service().delete_chapter(chapter_id)), 200


@chapters_bp.route("/<chapter_id>/rename", methods=["POST"])
def rename_chapter(chapter_id):
    data = json_body()
    result = _chapter_service().rename_chapter(chapter_id, data.get("new_id"))
    return jsonify(result), 200


@chapters_bp.route("/<chapter_id>/sections", methods=["GET"])
def list_sections(chapter_id):
    sections = section_service.list_sections(chapter_id)
    return jsonify({
        "chapter_id": chapter_id,
        "sections": [s.to_dict() for s in sections],
        "totalSections": len(sections),
        "freeSections": sum(1 for s in sections if s.is_free),
    }), 200


@chapters_bp.route("/<chapter_id>/sections", methods=["POST"])
def create_section(chapter_id):
    section = section_service.create_section(chapter_id, json_body())
    return jsonify(section.to_dict()), 201


@chapters_bp.route("/<chapter_id>/sections/<section_id>", methods=["GET"])
def get_section(chapter_id, section_id):
    return jsonify(section_service.get_section(chapter_id, section_id).to_dict()), 200


@chapters_bp.route("/<chapter_id>/sections/<section_id>", methods=["PUT"])
def update_section(chapter_id, section_id):
    section = section_service.update_section(chapter_id, section_id, json_body())
    return jsonify(section.to_dict()), 200


@chapters_bp.route("/<chapter_id>/sections/<section_id>", methods=["DELETE"])
def delete_section(chapter_id, section_id):
    return jsonify(section_service.delete_section(chapter_id, section_id)), 200
