from setuptools import setup, find_packages

with open("README.rst") as readme_file:
    readme = readme_file.read()
requirements = [
    "pyyaml",
    "lxml",
    "numpy",
    "pandas>=2",
    "click",
]
test_requirements = ["pytest"]

setup(
    name="rrd_transfer",
    version="0.1.0",
    license="MIT",
    description="Transfer round-robin archive history from a replaced device to its successor",
    long_description=readme,
    install_requires=requirements,
    extras_require={"test": test_requirements},
    include_package_data=True,
    packages=find_packages(include=["rrd_transfer", "rrd_transfer.*"]),
    package_data={
        "rrd_transfer": [
            "config_data/*.yaml",
        ]
    },
    python_requires=">=3.9",
    keywords=["rrd_transfer", "rra", "archive", "time series"],
    classifiers=[
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    entry_points={
        "console_scripts": [
            "rrd_transfer=rrd_transfer.__main__:cli",
            "inject_rra=rrd_transfer.inject:main",
            "export_rra=rrd_transfer.export:main",
            "show_dat=rrd_transfer.show_dat:main",
        ]
    },
)
