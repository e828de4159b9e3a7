"""BuildCost Estimator.

Cost estimation and tool advice for UK home-improvement projects.

Components:
- Multiplier Resolver: region, season, complexity and quality tier factors
- Cost Aggregator: catalog rows to bounded cost ranges
- Project Classifier: free-text query to project type, scale and duration
- Recommendation Engine: tool recommendations and buy-vs-rent advice
- Catalog Cache: single-flight TTL cache in front of the catalog provider
"""

__version__ = "1.0.0"
