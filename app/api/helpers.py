"""
Request helpers shared by the API blueprints
"""
from flask import request


def validate_json(model_class):
    """Parse the request body into `model_class`; a missing or non-JSON body is a ValueError"""
    data = request.get_json(silent=True)
    if data is None:
        raise ValueError("Missing JSON body")
    return model_class.model_validate(data)
