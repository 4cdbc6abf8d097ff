from __future__ import annotations
import os
from barbercraft import create_app

def main() -> None:
    app = create_app()
    prefix = app.config.get("API_PREFIX") or "/"

    # list the mounted endpoints so the frontend proxy can be checked at a glance
    print(f"\n=== BarberCraft API (prefix {prefix}) ===")
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint == "static":
            continue
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        print(f"{methods:<20} {rule.rule}")
    print("=" * 40 + "\n")

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 4000)), debug=debug_enabled)

if __name__ == "__main__":
    main()
