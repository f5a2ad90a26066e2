import setuptools

setuptools.setup(
    name="set-shas",
    version="0.1.0",
    url="https://gitea.com/set-shas/set-shas",
    author="set-shas contributors",
    packages=setuptools.find_packages(exclude=["tests"]),
    install_requires=[
        "requests",
        "ruamel.yaml"
    ],
    extras_require={
        "test": [
            "pytest"
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "set-shas = setshas.__main__:main",
        ],
    },
)
