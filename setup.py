"""Set-up file for porempfa for installations using ``pip install .``"""
from setuptools import find_packages, setup


with open("requirements.txt") as f:
    required = f.read().splitlines()

with open("requirements-dev.txt") as f:
    required_dev = f.read().splitlines()


setup(
    name="porempfa",
    version="0.3.0",
    license="GPL",
    keywords=["porous media two-phase flow mpfa finite volume"],
    install_requires=required,
    extras_require={"testing": required_dev},
    description="MPFA-O pressure solver with upwind mobilities for two-phase "
    "flow in porous media",
    platforms=["Linux", "Windows", "Mac OS-X"],
    python_requires=">=3.9",
    package_data={"porempfa": ["py.typed"]},
    packages=find_packages("src"),
    package_dir={"": "src"},
    zip_safe=False,
)
