from setuptools import setup, find_packages


setup(
    name="packager",
    version="0.20.2",
    packages=find_packages(include=["packager", "packager.*"]),
    description="Archive, compress, and sign directory trees into a single verifiable container file.",
    python_requires=">=3.9",
    install_requires=[
        "pycryptodomex>=3.23.0",
        "Brotli>=1.1.0",
        "wcmatch>=8.4",
    ],
    entry_points={
        "console_scripts": [
            "packager=packager.cli:main",
        ]
    },
)
