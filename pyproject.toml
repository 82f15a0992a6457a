[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webporto"
version = "1.0.0"
description = "In-memory content and analytics core for a portfolio site: articles, tags, categories, settings, comments, users, page-view analytics and HTTP request helpers."
requires-python = ">=3.10"
keywords = ["cms", "portfolio", "articles", "analytics", "middleware", "wsgi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content :: Content Management System",
]
dependencies = [
    "bcrypt",
    "python-slugify",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["webporto"]

[tool.pytest.ini_options]
addopts = "-ra"
