from typing import Any, Tuple

from flask import Response, jsonify


def success_response(data: Any = None, message: str = "Success", status_code: int = 200) -> Tuple[Response, int]:
    """
    Create a standardized success response.

    Args:
        data: Optional data to include in response
        message: Success message string
        status_code: HTTP status code (default: 200)
    """
    response = {
        "status": "success",
        "message": message
    }
    if data is not None:
        response["data"] = data
    return jsonify(response), status_code


def error_response(message: str, status_code: int = 400) -> Tuple[Response, int]:
    """
    Create a standardized error response.

    Args:
        message: Error message string
        status_code: HTTP status code (default: 400)
    """
    response = {
        "status": "error",
        "message": message
    }
    return jsonify(response), status_code
