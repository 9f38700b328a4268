from pathlib import Path

from setuptools import find_packages, setup

__version__ = "1.0.0"

base_dir = Path(__file__).parent
requirements_filepath = base_dir / "requirements.txt"
readme_filepath = base_dir / "README.md"
install_requires = requirements_filepath.read_text().splitlines()

extra_packages = {
    "tests": ["pytest", "pytest-asyncio", "httpx", "aiosqlite", "SQLAlchemy[asyncio]>=2.0.0"],
    "sqlalchemy": ["SQLAlchemy>=2.0.0"],
}
all_packages = []
for value in extra_packages.values():
    all_packages.extend(value)

EXTRAS_REQUIRE = {
    "all": all_packages,
}
EXTRAS_REQUIRE.update(extra_packages)


def get_description():
    """
    Read full description from 'README.md'
    """
    return readme_filepath.read_text(encoding="utf-8")


setup(
    name="FastAPI-QueryHelper",
    version=__version__,
    description="Build sorted, filtered and searchable list queries from FastAPI querystring parameters "
    "with the query builder of your choice (SQLAlchemy included)",
    long_description=get_description(),
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Utilities",
    ],
    keywords="fastapi querystring sqlalchemy filter sort",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"fastapi_query_helper": ["VERSION"]},
    zip_safe=False,
    platforms="any",
    install_requires=install_requires,
    extras_require=EXTRAS_REQUIRE,
    tests_require=["pytest"],
)
