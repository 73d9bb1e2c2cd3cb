from typing import Dict, List

from flask import Blueprint, jsonify, request

from ..engine.errors import (
    AlreadyLoggedIn, AuthenticationError, StateViolation,
    UnknownParticipant, UnknownProblem
)
from ..models.models import ContestState, Identity, TestCase
from ..utils.logger_config import get_logger
from .auth import get_services, require_admin, require_participant
from .responses import error_response, success_response

logger = get_logger("api")

api_bp = Blueprint("api", __name__, url_prefix="/api")

MSG_UNKNOWN_USER = "사용자 없음"
MSG_LOGIN_FAILED = "로그인 실패. 이름과 비밀번호를 확인하세요."
MSG_ALREADY_LOGGED_IN = "이 사용자는 이미 다른 곳에서 접속 중입니다."


def parse_test_cases(raw: List[Dict]) -> List[TestCase]:
    """Convert ``[{"input": ..., "output": ...}]`` from a request body into TestCases."""
    return [
        TestCase(expected_output=tc.get("output") or "", input_data=tc.get("input") or None)
        for tc in raw or []
    ]


def _problem_fields(data: Dict) -> Dict:
    return {
        "title": data.get("title", ""),
        "description": data.get("description", ""),
        "input_spec": data.get("input", ""),
        "output_spec": data.get("output", ""),
        "test_cases": parse_test_cases(data.get("testCases")),
    }


# --- Sessions ---

@api_bp.route("/login", methods=["POST"])
def login():
    """
    Log in as admin or participant.

    Request Body:
        username, password, role ("admin" or "participant")

    Returns:
        name, role and a bearer token
    """
    data = request.get_json(silent=True) or {}
    try:
        identity, token = get_services().sessions.login(
            data.get("username", ""), data.get("password", ""), data.get("role", "")
        )
    except AlreadyLoggedIn:
        return error_response(MSG_ALREADY_LOGGED_IN, 409)
    except AuthenticationError as e:
        logger.info(f"Login rejected for '{data.get('username', '')}': {e}")
        return error_response(MSG_LOGIN_FAILED, 401)

    return success_response({"name": identity.name, "role": identity.role.value, "token": token})


@api_bp.route("/logout", methods=["POST"])
@require_participant
def logout(identity: Identity):
    get_services().sessions.logout(identity.name)
    return success_response(message="Logged out")


# --- Participant views ---

@api_bp.route("/problems", methods=["GET"])
def list_problems():
    problems = get_services().storage.list_problems()
    return success_response([p.to_dict() for p in problems])


@api_bp.route("/status/<name>", methods=["GET"])
def participant_status(name: str):
    participant = get_services().storage.get_participant(name)
    if participant is None:
        return error_response(MSG_UNKNOWN_USER, 404)
    return success_response(participant.to_dict())


@api_bp.route("/submit", methods=["POST"])
@require_participant
def submit(identity: Identity):
    """
    Judge a submission for the calling participant.

    Request Body:
        problemId, code

    Returns:
        ``{"success": bool, "message": str}``
    """
    data = request.get_json(silent=True) or {}
    problem_id = data.get("problemId", "")
    try:
        verdict = get_services().judge.evaluate(identity.name, problem_id, data.get("code", ""))
    except UnknownParticipant:
        return jsonify({"success": False, "message": MSG_UNKNOWN_USER}), 404
    except UnknownProblem:
        return jsonify({"success": False, "message": f"Problem {problem_id} not found"}), 404
    return jsonify(verdict.to_dict())


@api_bp.route("/alerts", methods=["GET"])
def list_alerts():
    alerts = get_services().storage.list_alerts()
    return success_response([a.to_dict() for a in alerts])


@api_bp.route("/rankings", methods=["GET"])
def final_rankings():
    rankings = get_services().storage.list_final_rankings()
    return success_response([r.to_dict() for r in rankings])


@api_bp.route("/contest/state", methods=["GET"])
def contest_state():
    return success_response({"state": get_services().contest.state.value})


# --- Admin ---

@api_bp.route("/dashboard", methods=["GET"])
@require_admin
def dashboard(identity: Identity):
    return success_response(get_services().admin.dashboard())


@api_bp.route("/contest/state", methods=["POST"])
@require_admin
def change_contest_state(identity: Identity):
    data = request.get_json(silent=True) or {}
    try:
        target = ContestState(data.get("state"))
    except ValueError:
        return error_response(f"Unknown contest state: {data.get('state')}", 400)

    try:
        state = get_services().admin.set_contest_state(identity.name, target)
    except StateViolation as e:
        return error_response(str(e), 409)
    return success_response({"state": state.value}, f"Contest is now {state.value}")


@api_bp.route("/contest/reset", methods=["POST"])
@require_admin
def reset_contest(identity: Identity):
    try:
        state = get_services().admin.reset_contest(identity.name)
    except StateViolation as e:
        return error_response(str(e), 409)
    return success_response({"state": state.value}, "Contest data has been reset")


@api_bp.route("/rankings/finalize", methods=["POST"])
@require_admin
def finalize_rankings(identity: Identity):
    try:
        rankings = get_services().admin.finalize_rankings(identity.name)
    except StateViolation as e:
        return error_response(str(e), 409)
    return success_response([r.to_dict() for r in rankings], "Final rankings saved.")


@api_bp.route("/problems/<problem_id>", methods=["GET"])
@require_admin
def get_problem(problem_id: str, identity: Identity):
    try:
        problem = get_services().admin.get_problem(problem_id)
    except UnknownProblem:
        return error_response("Problem not found", 404)
    return success_response(problem.to_dict(include_test_cases=True))


@api_bp.route("/problems", methods=["POST"])
@require_admin
def create_problem(identity: Identity):
    data = request.get_json(silent=True) or {}
    if not data.get("title"):
        return error_response("Title is required", 400)

    problem = get_services().admin.create_problem(identity.name, **_problem_fields(data))
    return success_response(problem.to_dict(include_test_cases=True), "Problem created", 201)


@api_bp.route("/problems/<problem_id>", methods=["PUT"])
@require_admin
def update_problem(problem_id: str, identity: Identity):
    data = request.get_json(silent=True) or {}
    if not data.get("title"):
        return error_response("Title is required", 400)

    try:
        problem = get_services().admin.update_problem(identity.name, problem_id, **_problem_fields(data))
    except UnknownProblem:
        return error_response("Problem not found", 404)
    return success_response(problem.to_dict(include_test_cases=True), "Problem updated")


@api_bp.route("/problems/<problem_id>", methods=["DELETE"])
@require_admin
def delete_problem(problem_id: str, identity: Identity):
    try:
        get_services().admin.delete_problem(identity.name, problem_id)
    except UnknownProblem:
        return error_response("Problem not found", 404)
    return success_response(message=f"Problem {problem_id} deleted")


@api_bp.route("/users/<name>", methods=["DELETE"])
@require_admin
def kick_participant(name: str, identity: Identity):
    try:
        get_services().admin.kick_participant(identity.name, name)
    except UnknownParticipant:
        return error_response(MSG_UNKNOWN_USER, 404)
    return success_response(message=f"Participant {name} kicked")


@api_bp.route("/system/sandbox-status", methods=["GET"])
@require_admin
def sandbox_status(identity: Identity):
    return success_response(get_services().admin.sandbox_status())
