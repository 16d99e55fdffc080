"""Locating, fetching, caching and reading Taskfiles and their includes."""