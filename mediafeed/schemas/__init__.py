"""JSON Schemas shipped with mediafeed."""
