[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wgprimitives"
version = "0.4.0"
description = "Pure-Python BLAKE2s, Poly1305, ChaCha20-Poly1305 and X25519 primitives for the WireGuard protocol"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "wireguard",
    "blake2s",
    "chacha20",
    "poly1305",
    "xchacha20",
    "x25519",
    "curve25519",
    "aead",
]
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
    "Topic :: Security :: Cryptography",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wgprimitives"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
