from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, parse_bool
from ..container import Container
from .serializers import student_to_dict


def register(app: Flask, container: Container) -> None:
    service = container.student_service

    @app.route("/api/students", methods=["GET"], endpoint="api_list_students")
    def api_list_students():
        students = service.list_students(active_only=parse_bool(request.args.get("activeOnly"), False))
        return jsonify({"success": True, "students": [student_to_dict(s) for s in students]}), 200

    @app.route("/api/students", methods=["POST"], endpoint="api_register_student")
    def api_register_student():
        data = json_body()
        student = service.register_student(
            index_number=data.get("indexNumber"),
            name=data.get("name"),
            guardian_phone=data.get("guardianPhone"),
        )
        return jsonify(
            {"success": True, "message": "Student registered successfully", "student": student_to_dict(student)}
        ), 201

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="api_get_student")
    def api_get_student(student_id: int):
        return jsonify({"success": True, "student": student_to_dict(service.get_student(student_id))}), 200

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="api_update_student")
    def api_update_student(student_id: int):
        data = json_body()
        kwargs = {
            "index_number": data.get("indexNumber"),
            "name": data.get("name"),
            "status": data.get("status"),
        }
        if "guardianPhone" in data:
            kwargs["guardian_phone"] = data["guardianPhone"]
        student = service.update_student(student_id, **kwargs)
        return jsonify(
            {"success": True, "message": "Student updated successfully", "student": student_to_dict(student)}
        ), 200

    @app.route("/api/students/<int:student_id>/deactivate", methods=["POST"], endpoint="api_deactivate_student")
    def api_deactivate_student(student_id: int):
        student = service.deactivate_student(student_id)
        return jsonify(
            {"success": True, "message": "Student deactivated", "student": student_to_dict(student)}
        ), 200

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="api_delete_student")
    def api_delete_student(student_id: int):
        service.delete_student(student_id)
        return jsonify({"success": True, "message": "Student deleted successfully"}), 200
