[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "diskctl"
version = "0.1.0"
description = "Interactive shell for creating virtual disk images, partitioning them and formatting EXT2/EXT3-style file systems"
requires-python = ">=3.10"
dependencies = []
keywords = ["disk", "mbr", "ebr", "partition", "ext2", "ext3", "filesystem", "graphviz"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
diskctl = "diskctl.cli:main"

[tool.setuptools.packages.find]
include = ["diskctl*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
