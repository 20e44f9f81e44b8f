import os

from setuptools import setup, find_packages

with open(
    os.path.join(os.path.abspath(os.path.dirname(__file__)), "bcurl", "version.py"),
    encoding="utf-8",
) as f:
    exec(f.read())

with open(
    os.path.join(os.path.abspath(os.path.dirname(__file__)), "README.md"),
    encoding="utf-8",
) as r:
    README = r.read()

test_deps = ["pytest"]
extras = {
    "test": test_deps,
}

setup(
    name="bcurl",
    # pylint: disable=undefined-variable
    version=__version__,  # type: ignore
    description="A small curl-like HTTP client with connection reuse and parallel transfers",
    long_description=README,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP",
    ],
    install_requires=[
        "requests",
        "urllib3>=2",
        "brotli",
    ],
    tests_require=test_deps,
    extras_require=extras,
    include_package_data=True,
    packages=find_packages(include=["bcurl"]),
    entry_points={
        "console_scripts": ["bcurl=bcurl.cli:main"],
    },
    python_requires=">=3.7",
)
