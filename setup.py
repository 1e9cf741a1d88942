from setuptools import setup, find_packages

setup(
    name="static-indexes",
    version="0.1.0",
    description="Write static index.html listings into directories so they can be browsed from a plain file server",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="0BSD",
    python_requires=">=3.10",
    packages=find_packages(),
    package_data={"staticindexes_package": ["assets/*"]},
    install_requires=[
        "markdown>=3.8.2",
        "mcp>=1.0.0,<2",
    ],
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": [
            "static-indexes=staticindexes_package.staticindexes:main",
            "static-indexes-mcp=staticindexes_package.mcp_server:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Utilities",
    ],
)
