"""JSON transformer operator definition."""

OPERATOR = {
    "info": {
        "name": "json-transformer",
        "title": "JSON Transformer",
        "description": "Filter and merge JSON objects",
        "version": "1.0.0",
        "category": "data-transform",
        "tags": ["json", "transform"],
        "author": "operator-host maintainers",
    },
    "routes": "./json-transformer.routes.py",
    "openapi": {
        "paths": {
            "/filter": {
                "post": {
                    "summary": "Filter JSON fields",
                    "description": "Keep only the listed fields of an object",
                    "operationId": "filterJson",
                    "security": [{"ApiKeyAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["data", "fields"],
                                    "properties": {
                                        "data": {"type": "object"},
                                        "fields": {"type": "array", "items": {"type": "string"}},
                                    },
                                }
                            }
                        },
                    },
                    "responses": {
                        "200": {
                            "description": "Filtered object",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "success": {"type": "boolean"},
                                            "data": {
                                                "type": "object",
                                                "properties": {
                                                    "result": {"type": "object"},
                                                    "fieldsCount": {"type": "number"},
                                                    "originalFields": {"type": "number"},
                                                },
                                            },
                                        },
                                    }
                                }
                            },
                        }
                    },
                }
            },
            "/merge": {
                "post": {
                    "summary": "Merge JSON objects",
                    "description": "Shallow-merge a list of objects, later keys win",
                    "operationId": "mergeJson",
                    "security": [{"ApiKeyAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["objects"],
                                    "properties": {
                                        "objects": {"type": "array", "items": {"type": "object"}},
                                    },
                                }
                            }
                        },
                    },
                    "responses": {
                        "200": {
                            "description": "Merged object",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "success": {"type": "boolean"},
                                            "data": {
                                                "type": "object",
                                                "properties": {
                                                    "result": {"type": "object"},
                                                    "mergedCount": {"type": "number"},
                                                    "totalFields": {"type": "number"},
                                                },
                                            },
                                        },
                                    }
                                }
                            },
                        }
                    },
                }
            },
        }
    },
}
