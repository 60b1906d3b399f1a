from setuptools import setup, find_packages
setup(
    name="asset_listr",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "fastapi<0.137",
        "pydantic>=2",
        "requests",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ]
    },
    entry_points={
        'console_scripts': [
            'asset_listr=asset_listr.__main__:run'
        ]
    }
)
