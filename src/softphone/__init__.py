"""Client-side helpers for the browser softphone.

The vendor device object (WebRTC, audio devices) stays in the browser; this
package holds the parts that talk to this backend and interpret device errors.
"""
