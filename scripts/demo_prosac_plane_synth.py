import numpy as np

from sacseg import MethodType, ModelType, SACSegmentation
from sacseg.utils import setup_logger


def main() -> None:
    setup_logger("sacseg")
    rng = np.random.default_rng(0)

    # True plane: z = 0.2 x - 0.1 y + 1
    normal = np.array([0.2, -0.1, -1.0])
    normal /= np.linalg.norm(normal)
    d = 1.0 / np.linalg.norm([0.2, -0.1, -1.0])

    # Generate inlier points with a little noise
    n_in = 600
    xy = rng.uniform(-5.0, 5.0, size=(n_in, 2))
    z = 0.2 * xy[:, 0] - 0.1 * xy[:, 1] + 1.0 + rng.normal(0.0, 0.005, size=n_in)
    inliers = np.column_stack([xy, z])

    # Add outliers
    n_out = 400
    outliers = rng.uniform(-5.0, 5.0, size=(n_out, 3))

    points = np.vstack([inliers, outliers])

    # Quality score: inliers were "matched" more confidently
    quality = np.concatenate([rng.uniform(0.5, 1.0, n_in), rng.uniform(0.0, 0.7, n_out)])
    order = np.argsort(-quality)

    seg = SACSegmentation()
    seg.set_input_cloud(points)
    seg.set_indices(order)
    seg.set_model_type(ModelType.PLANE)
    seg.set_method_type(MethodType.PROSAC)
    seg.set_distance_threshold(0.02)
    seg.set_max_iterations(1000)

    res = seg.segment()

    print("plane_true:", np.append(normal, d))
    if not res.success:
        print("PROSAC failed.")
        return

    print("plane_est:", res.coefficients)
    print("num_inliers:", res.inliers.size, "/", points.shape[0])
    print("iterations:", res.iterations)
    print("refined:", res.refined)


if __name__ == "__main__":
    main()
