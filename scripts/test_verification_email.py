#!/usr/bin/env python3
"""Send a sample OTP email and print the result. Use to debug Mailgun/SendGrid delivery.
Usage: from project root, run:
  python scripts/test_verification_email.py you@example.com
"""
import os
import sys

# Project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/test_verification_email.py <to_email>")
        return 1
    to_email = sys.argv[1].strip()
    from pathlib import Path
    from app.config import _env_path, get_settings
    from app.services.notifications import send_otp_email

    s = get_settings()
    print("SourcingScreen verification email test")
    print(f"  .env path: {_env_path} (exists: {Path(_env_path).exists()})")
    print("  Config:")
    print(f"    MAILGUN_DOMAIN={repr(s.mailgun_domain) or '(empty)'}")
    print(f"    MAILGUN_FROM_EMAIL={repr(s.mailgun_from_email) or '(default)'}")
    print(f"    MAILGUN_API_KEY={'set (hidden)' if s.mailgun_api_key else '(empty)'}")
    print(f"    SENDGRID_API_KEY={'set (hidden)' if s.sendgrid_api_key else '(empty)'}")
    print(f"  Sending sample code to: {to_email}")
    print("-" * 50)

    ok = send_otp_email(to_email, "there", "123456")
    print("-" * 50)
    if ok:
        print("Result: SUCCESS - the provider accepted the message.")
        print("  If you do not receive it: check spam; if using a Mailgun sandbox domain, add this address under Authorized recipients.")
    else:
        print("Result: FAILED - see the [Email]/[Mailgun]/[SendGrid] log lines above.")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
