"""Package setup for dynamic-file-searcher."""

from setuptools import setup, find_packages

setup(
    name="dynamic-file-searcher",
    version="1.0.0",
    description="Concurrent web-path discovery scanner using hostname-derived words",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "urllib3>=2.1.0",
        "curl_cffi>=0.7.0",
        "psutil>=5.9.0",
    ],
    extras_require={
        "ui": [
            "tqdm>=4.66.0",
            "colorlog>=6.8.0",
        ],
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "file-searcher=file_searcher.cli:main",
        ],
    },
)
