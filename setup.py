from setuptools import setup, find_packages

# Read dependencies from requirements.txt
with open("requirements.txt") as f:
    install_requires = [line.strip() for line in f if line.strip() and not line.startswith("#")]

# Read version from version.txt
with open("version.txt") as f:
    version = f.read().strip()

setup(
    name="csbench",
    version=version,
    packages=["csbench"] + ["csbench." + pkg for pkg in find_packages(where="csbench")],
    package_dir={"csbench": "csbench"},
    install_requires=install_requires,
    entry_points={
        "console_scripts": [
            "csbench=csbench.main:main",
        ],
    },
    include_package_data=True,
    description="Client/server benchmark run coordinator for memcached and memtier",
    author="Advanced Micro Devices, Inc.",
    author_email="support@amd.com",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Intended Audience :: Developers",
        "Topic :: System :: Benchmark",
        "Topic :: Software Development :: Testing",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.9",
)
