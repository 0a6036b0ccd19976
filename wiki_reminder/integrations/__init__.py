"""External service clients: Outline wiki, MailerSend email, Google Chat."""
