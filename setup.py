"""Setup script for provkit."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the version from __version__.py
version_dict = {}
with open("provkit/__version__.py") as f:
    exec(f.read(), version_dict)

VERSION = version_dict["__version__"]

# Read the long description from README
README = Path("README.md").read_text(encoding="utf-8")

setup(
    name="provkit",
    version=VERSION,
    description="Idempotent server provisioning helpers: config files, data disks, databases and backups",
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",
            "ruff>=0.1.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "provkit-mount-data-disk=provkit.main:mount_data_disk_main",
            "provkit-harden-apache2=provkit.main:harden_apache2_main",
            "provkit-harden-nginx=provkit.main:harden_nginx_main",
            "provkit-update-php-config=provkit.main:update_php_config_main",
            "provkit-create-mysql-database=provkit.main:create_mysql_database_main",
            "provkit-create-postgresql-database=provkit.main:create_postgresql_database_main",
            "provkit-backup=provkit.main:backup_main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Systems Administration",
        "Topic :: System :: Installation/Setup",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
    ],
    keywords="provisioning configuration fstab backup mysql postgresql nginx apache",
)
