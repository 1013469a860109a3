# -*- coding: utf-8 -*-

__title__ = "gaugekit"
__description__ = "Lazy, deduplicated gauge registration for Python instrumentation."
__version__ = "0.1.0"
__license__ = "Apache 2.0"
