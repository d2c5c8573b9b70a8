from setuptools import setup, find_packages

setup(
    name='tbt',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    install_requires=['pyarrow'],  # objects table export
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'tbt=tbt.cli:main'
        ]
    },
    description='An interpreter for TBT, a tile-based grid language with batch and stepwise execution',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    python_requires='>=3.8',
)
