"""Taskfile data model, its YAML decoding, and the graph of included Taskfiles."""