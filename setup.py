from setuptools import setup

setup(
    name='vistagrid',
    version='0.1.0',
    packages=['vistagrid', 'vistagrid.algos', 'vistagrid.metrics', 'vistagrid.tools'],
    description='Cumulative viewshed analysis for digital elevation models',
    author='Gareth Simons',
    author_email='info@benchmarkurbanism.com',
    license='GNU AGPLv3',
    python_requires='>=3.9',
    install_requires=[
        'geopandas',
        'numba',
        'numpy',
        'pyproj',
        'rasterio',
        'shapely',
        'tqdm',
    ],
    extras_require={
        'test': [
            'pytest',
        ]
    }
)
