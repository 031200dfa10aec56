"""Configuration — environment variables, dicts and layered overrides.

Demonstrates:
- DeployConfig.from_env with the S3_* variables
- DeployConfig.from_dict with camelCase option names
- merged() skipping empty overrides
"""

from __future__ import annotations

from s3_deploy import DeployConfig

if __name__ == "__main__":
    env = {
        "S3_BUCKET": "my-site",
        "S3_PREFIX": "static",
        "S3_GZIP_EXTENSIONS": "html,css,js",
        "S3_RETRY_DELAY": "500",
        "S3_REPLACE_UNTIL_MAINTENANCE": "index.html,maintenance.html",
    }
    from_env = DeployConfig.from_env(env)
    print(f"From env: bucket={from_env.bucket}, prefix={from_env.key_prefix}")
    print(f"  gzip={sorted(from_env.gzip_extensions)}, retry_delay={from_env.retry_delay}s")
    print(f"  maintenance={from_env.maintenance}")

    from_dict = DeployConfig.from_dict(
        {
            "bucket": "my-site",
            "localDir": "dist",
            "maxAsyncStreams": 8,
            "uploadMaxPartSize": 8 * 1024 * 1024,
            "cloudFrontDistribution": "E2EXAMPLE",
        }
    )
    print(f"\nFrom dict: local_dir={from_dict.local_dir}, streams={from_dict.max_async_streams}")
    print(f"  part_size={from_dict.part_size}, distribution={from_dict.cloudfront_distribution}")

    # None and "" leave values alone; anything else wins
    layered = from_env.merged(bucket=None, remote_dir="", max_async_streams=4)
    print(f"\nLayered: bucket={layered.bucket}, prefix={layered.remote_dir}, streams={layered.max_async_streams}")

    layered.validate()
    print("Valid.")
