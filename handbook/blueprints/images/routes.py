from flask import current_app, jsonify, request

from handbook.blueprints import bool_arg, int_arg, json_body
from handbook.blueprints.images import images_bp
from handbook.services.context_service import ContextService
from handbook.services.image_resolver import ImageResolver
from handbook.services.image_service import ImageService


resolver = ImageResolver()
image_service = ImageService()


def _context_service():
    config = current_app.config
    return ContextService(
        resolver=resolver,
        context_limit=config.get("CONTEXT_IMAGE_LIMIT", 50),
        recent_limit=config.get("RECENT_IMAGE_LIMIT", 10),
        suggestion_limit=config.get("SUGGESTION_LIMIT", 5),
    )


@images_bp.route("/context", methods=["GET"])
def get_context():
    chapter_id = request.args.get("chapterId")
    section_id = request.args.get("sectionId")
    usage = request.args.get("usage")
    include_sub_sections = bool_arg("includeSubSections")
    orphans = bool_arg("orphans")
    search = request.args.get("search")

    # Browsing (paged, filtered or orphan lists) bypasses the editor façade.
    if request.args.get("page") or include_sub_sections or orphans or search:
        result = resolver.paginate_context(
            chapter_id=chapter_id,
            section_id=section_id,
            usage=usage,
            include_sub_sections=include_sub_sections,
            orphans=orphans,
            search=search,
            page=int_arg("page", 1),
            per_page=int_arg("limit", 20),
        )
        return jsonify({
            "data": [img.to_dict() for img in result["data"]],
            "pagination": result["pagination"],
        }), 200

    context = _context_service().get_editable_context(
        chapter_id=chapter_id,
        section_id=section_id,
        usage=usage,
        include_recent=bool_arg("includeRecent"),
    )
    return jsonify(context.to_dict()), 200


@images_bp.route("/context", methods=["POST"])
def associate_images():
    data = json_body()
    results = resolver.associate(
        data.get("image_ids"),
        chapter_id=data.get("chapter_id"),
        section_id=data.get("section_id"),
        usage=data.get("usage"),
        start_order=data.get("start_order", 0),
    )
    return jsonify({"updatedCount": len(results), "results": results}), 200


@images_bp.route("/recommended", methods=["GET"])
def recommended():
    groups = resolver.recommend(
        request.args.get("chapterId"),
        usage=request.args.get("usage"),
        limit=int_arg("limit", current_app.config.get("RECENT_IMAGE_LIMIT", 10)),
    )
    return jsonify({
        "groups": [dict(group, images=[img.to_dict() for img in group["images"]]) for group in groups]
    }), 200


@images_bp.route("/orphans", methods=["GET"])
def list_orphans():
    days = int_arg("days", current_app.config.get("ORPHAN_MAX_AGE_DAYS", 30))
    images = resolver.find_orphans(older_than_days=days)
    return jsonify({
        "olderThanDays": days,
        "count": len(images),
        "images": [img.to_dict() for img in images],
    }), 200


@images_bp.route("/orphans/purge", methods=["POST"])
def purge_orphans():
    data = json_body()
    deleted = resolver.purge_orphans(data.get("image_ids") or [], confirm=data.get("confirm") is True)
    return jsonify({"deleted": deleted, "deletedCount": len(deleted)}), 200


@images_bp.route("", methods=["POST"])
def register_image():
    image = image_service.register_image(json_body())
    return jsonify(image.to_dict()), 201


@images_bp.route("/<image_id>", methods=["GET"])
def get_image(image_id):
    image = image_service.get_image(image_id)
    data = image.to_dict()
    problems = resolver.check_ownership(image)
    if problems:
        data["problems"] = problems
    return jsonify(data), 200


@images_bp.route("/<image_id>", methods=["PUT"])
def update_image(image_id):
    return jsonify(image_service.update_image(image_id, json_body()).to_dict()), 200


@images_bp.route("/<image_id>", methods=["DELETE"])
def delete_image(image_id):
    return jsonify(image_service.delete_image(image_id)), 200
