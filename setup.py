# setup.py
from setuptools import setup

setup(
    name="phplite",
    version="0.3.0",
    description="PHP-lite front-end and language server",
    packages=["phplite", "phplite.reader", "phplite.semantics", "phplite_lsp"],
    package_data={"phplite": ["stubs/*.php"]},
    python_requires=">=3.10",
    install_requires=[
        "pygls>=2.0",
        "lsprotocol>=2025.0.0",
    ],
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": ["phplite-ls=phplite_lsp.server:main"],
    },
    zip_safe=False,
)
