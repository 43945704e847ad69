"""String utilities operator definition."""

_RESULT_SCHEMA = {
    "type": "object",
    "properties": {
        "success": {"type": "boolean"},
        "data": {
            "type": "object",
            "properties": {
                "result": {"type": "string"},
                "original": {"type": "string"},
                "transformations": {"type": "array", "items": {"type": "string"}},
                "length": {
                    "type": "object",
                    "properties": {"before": {"type": "number"}, "after": {"type": "number"}},
                },
            },
        },
    },
}

OPERATOR = {
    "info": {
        "name": "string-utils",
        "title": "String Utilities",
        "description": "String formatting and validation",
        "version": "1.0.0",
        "category": "text-processing",
        "tags": ["string", "text"],
        "author": "operator-host maintainers",
    },
    "routes": "./string-utils.routes.py",
    "openapi": {
        "paths": {
            "/format": {
                "post": {
                    "summary": "Format a string",
                    "description": "Trim whitespace and change letter case",
                    "operationId": "formatString",
                    "security": [{"ApiKeyAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["input"],
                                    "properties": {
                                        "input": {"type": "string", "example": "  hello world  "},
                                        "options": {
                                            "type": "object",
                                            "properties": {
                                                "case": {"type": "string", "enum": ["upper", "lower", "title"]},
                                                "trim": {"type": "boolean", "default": True},
                                            },
                                        },
                                    },
                                }
                            }
                        },
                    },
                    "responses": {
                        "200": {
                            "description": "Formatted string",
                            "content": {"application/json": {"schema": _RESULT_SCHEMA}},
                        },
                        "400": {"$ref": "#/components/responses/BadRequest"},
                    },
                }
            },
            "/validate": {
                "post": {
                    "summary": "Validate a string",
                    "description": "Check whether a string is an email address, phone number or URL",
                    "security": [{"ApiKeyAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["input", "type"],
                                    "properties": {
                                        "input": {"type": "string", "example": "user@example.com"},
                                        "type": {"type": "string", "enum": ["email", "phone", "url"]},
                                    },
                                }
                            }
                        },
                    },
                    "responses": {
                        "200": {
                            "description": "Validation result",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/ValidationResult"}
                                }
                            },
                        }
                    },
                }
            },
        },
        "components": {
            "schemas": {
                "ValidationResult": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean"},
                        "data": {
                            "type": "object",
                            "properties": {
                                "valid": {"type": "boolean"},
                                "type": {"type": "string"},
                                "input": {"type": "string"},
                                "message": {"type": "string"},
                            },
                        },
                    },
                }
            }
        },
    },
}
