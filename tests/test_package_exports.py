import pnl_projector as pp


def test_package_exports():
    # Ensure the package exposes expected symbols
    for name in pp.__all__:
        assert hasattr(pp, name)
    assert callable(pp.project)
    assert pp.ProjectionInputs().mode == "basic"
    assert pp.HybridInputs().mode == "hybrid"
