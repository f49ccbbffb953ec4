"""
Core Modules
=============
Deterministic evidence-to-verdict logic, free of network I/O:
- patterns.py           : versioned romance-scam keyword catalog
- text_classifier.py    : chat text -> Chat finding
- metrics_extractor.py  : screenshot OCR text -> profile metrics
- social_scorer.py      : profile metrics / URL -> Social finding
- image_analyzer.py     : reverse-image matches -> Image finding
- entity_extractor.py   : candidate name and social handles
- aggregator.py         : findings -> overall score and level
- report.py             : aggregate + entity -> report payload
- pipeline.py           : parallel fan-out / fan-in of one scan
"""
