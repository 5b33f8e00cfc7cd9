from setuptools import setup

setup(
    name='pylascodec',
    version='0.0.1',
    url='https://github.com/pktrigg/pylascodec',
    author=(
        "pktrigg;"
    ),
    author_email=(
        "pktrigg@gmail.com;"
    ),
    description=(
        'Native reader and writer for ASPRS LAS 1.0 to 1.4 point cloud files, with conversion of points to text'
    ),
    entry_points={
        "gui_scripts": [],
        "console_scripts": [
            'las2txt = las2txt:main',
        ],
    },
    py_modules=[
        'laserrors',
        'lasio',
        'lasfield',
        'lasschema',
        'pylasfile',
        'las2txt',
    ],
    zip_safe=False,
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'pyproj',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
