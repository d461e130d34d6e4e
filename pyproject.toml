[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vestro"
version = "0.1.0"
description = "Batch job that imports fuel supply and sales data from the Vestro API and forwards it to Agriwin"
requires-python = ">=3.10"
keywords = ["vestro", "agriwin", "fuel", "import", "integration", "batch"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
]
dependencies = [
    "requests>=2.28",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
vestro = "vestro.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["vestro"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
