"""
Sample historical returns table (S&P 500 total return, 10-year Treasury
total return, CPI inflation), 1926-2023, from Aswath Damodaran's annual
returns dataset.

Rows are ``(year, stock_return, bond_return, inflation_rate)`` with decimal
rates. Callers that have their own data pass it to the backtester instead.
"""

from __future__ import annotations

from typing import Tuple

import pandas as pd

__all__ = ["SAMPLE_HISTORICAL_DATA", "HISTORY_COLUMNS", "load_sample_history"]


HISTORY_COLUMNS = ("stock_return", "bond_return", "inflation_rate")

SAMPLE_HISTORICAL_DATA: Tuple[Tuple[int, float, float, float], ...] = (
    (1926, 0.1162, 0.0774, -0.0149),
    (1927, 0.3749, 0.0893, -0.0208),
    (1928, 0.4361, 0.0010, -0.0097),
    (1929, -0.0842, 0.0484, 0.0019),
    (1930, -0.2490, 0.0466, -0.0603),
    (1931, -0.4334, -0.0256, -0.0952),
    (1932, -0.0819, 0.0888, -0.1030),
    (1933, 0.5399, 0.0196, 0.0051),
    (1934, -0.0144, 0.1020, 0.0203),
    (1935, 0.4767, 0.0498, 0.0299),
    (1936, 0.3392, 0.0751, 0.0121),
    (1937, -0.3503, 0.0123, 0.0291),
    (1938, 0.2928, 0.0521, -0.0278),
    (1939, -0.0110, 0.0594, 0.0000),
    (1940, -0.1067, 0.0555, 0.0096),
    (1941, -0.1277, 0.0053, 0.0993),
    (1942, 0.1917, 0.0273, 0.0929),
    (1943, 0.2550, 0.0249, 0.0316),
    (1944, 0.1946, 0.0273, 0.0232),
    (1945, 0.3582, 0.0373, 0.0225),
    (1946, -0.0843, 0.0028, 0.1817),
    (1947, 0.0520, -0.0010, 0.0901),
    (1948, 0.0570, 0.0340, 0.0290),
    (1949, 0.1879, 0.0645, -0.0180),
    (1950, 0.3171, 0.0043, 0.0579),
    (1951, 0.2402, -0.0069, 0.0587),
    (1952, 0.1837, 0.0288, 0.0088),
    (1953, -0.0099, 0.0349, 0.0062),
    (1954, 0.5262, 0.0542, -0.0050),
    (1955, 0.3156, -0.0046, 0.0037),
    (1956, 0.0656, -0.0290, 0.0286),
    (1957, -0.1078, 0.0823, 0.0302),
    (1958, 0.4336, -0.0226, 0.0176),
    (1959, 0.1196, -0.0097, 0.0150),
    (1960, 0.0047, 0.1378, 0.0148),
    (1961, 0.2689, 0.0251, 0.0067),
    (1962, -0.0873, 0.0730, 0.0122),
    (1963, 0.2280, 0.0206, 0.0165),
    (1964, 0.1648, 0.0435, 0.0119),
    (1965, 0.1245, 0.0046, 0.0192),
    (1966, -0.1006, 0.0362, 0.0335),
    (1967, 0.2398, -0.0119, 0.0304),
    (1968, 0.1106, 0.0051, 0.0472),
    (1969, -0.0850, -0.0507, 0.0611),
    (1970, 0.0401, 0.1653, 0.0549),
    (1971, 0.1431, 0.1323, 0.0336),
    (1972, 0.1898, 0.0568, 0.0341),
    (1973, -0.1466, 0.0129, 0.0880),
    (1974, -0.2647, 0.0535, 0.1220),
    (1975, 0.3723, 0.0919, 0.0694),
    (1976, 0.2384, 0.1675, 0.0486),
    (1977, -0.0718, 0.0077, 0.0670),
    (1978, 0.0656, 0.0012, 0.0903),
    (1979, 0.1844, 0.0067, 0.1329),
    (1980, 0.3242, -0.0395, 0.1252),
    (1981, -0.0491, 0.0185, 0.0894),
    (1982, 0.2155, 0.3297, 0.0387),
    (1983, 0.2256, 0.0041, 0.0380),
    (1984, 0.0627, 0.1543, 0.0395),
    (1985, 0.3216, 0.3090, 0.0328),
    (1986, 0.1847, 0.2446, 0.0113),
    (1987, 0.0525, -0.0046, 0.0441),
    (1988, 0.1661, 0.0867, 0.0442),
    (1989, 0.3169, 0.1811, 0.0465),
    (1990, -0.0310, 0.0618, 0.0661),
    (1991, 0.3055, 0.1930, 0.0306),
    (1992, 0.0762, 0.0846, 0.0290),
    (1993, 0.1008, 0.1445, 0.0275),
    (1994, 0.0132, -0.0777, 0.0267),
    (1995, 0.3758, 0.2337, 0.0254),
    (1996, 0.2296, 0.0013, 0.0333),
    (1997, 0.3336, 0.0970, 0.0170),
    (1998, 0.2858, 0.1449, 0.0155),
    (1999, 0.2104, -0.0751, 0.0268),
    (2000, -0.0910, 0.1722, 0.0339),
    (2001, -0.1189, 0.0551, 0.0155),
    (2002, -0.2210, 0.1515, 0.0240),
    (2003, 0.2869, 0.0201, 0.0188),
    (2004, 0.1088, 0.0481, 0.0327),
    (2005, 0.0491, 0.0343, 0.0336),
    (2006, 0.1579, 0.0197, 0.0254),
    (2007, 0.0549, 0.0984, 0.0407),
    (2008, -0.3700, 0.2034, 0.0009),
    (2009, 0.2646, -0.0826, 0.0272),
    (2010, 0.1506, 0.0854, 0.0164),
    (2011, 0.0211, 0.1675, 0.0300),
    (2012, 0.1600, 0.0297, 0.0177),
    (2013, 0.3239, -0.0901, 0.0150),
    (2014, 0.1369, 0.1086, 0.0080),
    (2015, 0.0138, 0.0087, 0.0073),
    (2016, 0.1196, 0.0069, 0.0224),
    (2017, 0.2183, 0.0241, 0.0221),
    (2018, -0.0438, 0.0002, 0.0181),
    (2019, 0.3149, 0.0867, 0.0228),
    (2020, 0.1840, 0.1104, 0.0123),
    (2021, 0.2871, -0.0254, 0.0700),
    (2022, -0.1811, -0.1731, 0.0652),
    (2023, 0.2638, 0.0463, 0.0324),
)


def load_sample_history() -> pd.DataFrame:
    """Sample table as a DataFrame indexed by ``year``."""
    frame = pd.DataFrame(SAMPLE_HISTORICAL_DATA, columns=["year", *HISTORY_COLUMNS])
    return frame.set_index("year")
