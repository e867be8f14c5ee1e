"""
classweave applies transformers to compiled Java classes, exactly once per class.

Example usage:

```python
from pathlib import Path

from classweave import executor
from classweave.transformers.marker import MarkerFieldTransformer

result = executor.execute(Path("target/classes"), transformers=[MarkerFieldTransformer()])
print(f"Transformed {result.transformed_count} classes")
```
"""

__all__ = [
    "executor",
    "project",
    "transformer",
    "stamp",
    "config",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
