"""
Built-in drill scenarios for onboarding artifacts.

Onboarding artifacts carry a catalog key instead of generated scenario rows,
so their first drills load instantly. Each key maps to four scenarios; a
session uses three of them.
"""

ONBOARDING_SCENARIOS = {
    # Next play mentality
    "airball_laugh": [
        {
            "id": "airball_1",
            "situation": "You just airballed a wide-open three in front of the home crowd.",
            "current_thought": "That was embarrassing, everyone saw that",
            "options": [
                ("Next play", "optimal", "Perfect! You're not dwelling. You're moving forward instantly."),
                ("I should probably pass more now", "negative", "Don't change your game because of one miss. Stay aggressive with next play mentality."),
                ("Coach is going to sub me out", "negative", "That's future-thinking anxiety. Stay present: next play."),
                ("Shake it off and focus on defense", "helpful", "Good reset, but the optimal response is even simpler: just 'next play.'"),
            ],
        },
        {
            "id": "airball_2",
            "situation": "After a turnover, you hear someone in the stands laugh.",
            "current_thought": "Everyone's judging me right now",
            "options": [
                ("Shake it off and get back on defense", "optimal", "Exactly! Physical reset helps trigger the mental reset. Next play."),
                ("Try to make up for it immediately", "negative", "Forcing plays to 'make up' for mistakes creates more mistakes. Just play the next play."),
                ("Wonder what they're thinking about me", "negative", "External opinions don't help your game. Focus on the next play."),
                ("Take a deep breath and refocus", "helpful", "Breathing helps, but immediate action (getting back on D) is even better."),
            ],
        },
        {
            "id": "airball_3",
            "situation": "You miss a crucial free throw late in the game.",
            "current_thought": "I always choke under pressure",
            "options": [
                ("Get back and play defense", "optimal", "Perfect! The free throw is done. Next play is defense."),
                ("I need to make the next one", "negative", "That's pressure-building. Just focus on the immediate next play, which is defense."),
                ("This game is over", "negative", "Game's not over until it's over. Next play mentality keeps you in it."),
                ("Stay aggressive, I'll get another chance", "helpful", "Good mindset, but the immediate next play is defense. Lock in there first."),
            ],
        },
        {
            "id": "airball_4",
            "situation": "You just got blocked hard on a drive to the basket.",
            "current_thought": "That's on video forever, everyone saw me get embarrassed",
            "options": [
                ("Next opportunity to attack", "optimal", "Yes! You're already thinking about your next chance. That's next play mentality."),
                ("I shouldn't drive on them again", "negative", "Don't let one play change your aggressiveness. Next play."),
                ("Everyone saw that", "negative", "External focus keeps you stuck. Get back to next play mentality."),
                ("Learn from it and move on", "helpful", "Learning is good, but 'next opportunity to attack' shows true next play aggression."),
            ],
        },
    ],
    # Take what helps, leave the rest
    "coach_yells": [
        {
            "id": "coach_1",
            "situation": "Coach yells 'What are you doing?!' after a mistake.",
            "current_thought": "They're so mad at me, I messed up again",
            "options": [
                ("What specific action needs to change", "optimal", "Perfect! You're filtering for the useful instruction. Take what helps, leave the rest."),
                ("The emotion in their voice", "negative", "The emotion is noise. Filter for the instruction underneath."),
                ("Whether they're mad at me personally", "negative", "That's personalizing coaching. Filter for what helps your game."),
                ("Try to stay calm and composed", "helpful", "Staying calm is good, but actively filtering for the instruction is even better."),
            ],
        },
        {
            "id": "coach_2",
            "situation": "Coach criticizes your effort in front of the team.",
            "current_thought": "This is so embarrassing, everyone's watching me get called out",
            "options": [
                ("Extract the valid point about effort level", "optimal", "Exactly! You're filtering out the delivery, keeping the useful feedback."),
                ("Feel embarrassed and defensive", "negative", "Emotions block the filter. Look for what you can actually use."),
                ("Think about how unfair that was", "negative", "Fairness thinking blocks learning. Filter for what helps."),
                ("Acknowledge and move on", "helpful", "Moving on is good, but extracting the valid point shows true filtering."),
            ],
        },
        {
            "id": "coach_3",
            "situation": "Coach says 'You're playing scared!' in a harsh tone.",
            "current_thought": "They think I'm weak and not tough enough",
            "options": [
                ("I need to be more aggressive", "optimal", "Yes! You filtered harsh language for clear, actionable direction."),
                ("They think I'm not tough enough", "negative", "You're interpreting character judgment. Filter for the behavioral instruction."),
                ("I should feel bad about myself", "negative", "Feeling bad doesn't help. Filter for what actually helps your game."),
                ("Don't take it personally", "helpful", "Not taking it personally is good, but extracting 'be more aggressive' is the full filter."),
            ],
        },
        {
            "id": "coach_4",
            "situation": "Coach snaps 'Move your feet!' while you're already hustling.",
            "current_thought": "I am moving my feet, they're just frustrated with me",
            "options": [
                ("My footwork needs adjustment", "optimal", "Perfect! You extracted the useful technical feedback, left the emotional charge."),
                ("They're frustrated with me", "negative", "That's emotional interpretation. Filter for the technical instruction."),
                ("I'm not playing well enough", "negative", "Too vague. Filter for the specific actionable instruction."),
                ("Stay focused on my technique", "helpful", "Good mindset, but 'footwork needs adjustment' is the specific filtered instruction."),
            ],
        },
    ],
    # Shooters shoot
    "miss_spiral": [
        {
            "id": "miss_1",
            "situation": "You're 5/7 from three, then miss your next shot.",
            "current_thought": "I'm cooling off, maybe I should pass more",
            "options": [
                ("Shooters shoot - stay aggressive", "optimal", "Exactly! You're not letting one miss change your identity as a scorer."),
                ("I'm cooling off, better pass more", "negative", "One miss doesn't mean you're cold. Shooters shoot."),
                ("Don't want to mess up my percentage", "negative", "Stats thinking kills aggression. Shooters shoot."),
                ("Take the next good look", "helpful", "Taking good looks is fine, but 'shooters shoot' mentality keeps you fully aggressive."),
            ],
        },
        {
            "id": "miss_2",
            "situation": "After hitting 3 straight shots, you miss an open look.",
            "current_thought": "That broke my rhythm, I was feeling it and now it's gone",
            "options": [
                ("Get ready for my next shot", "optimal", "Perfect! Short memory. You're staying in your shooter's mentality."),
                ("Hope I get another chance soon", "negative", "Don't 'hope' for chances. Demand the ball. Shooters shoot."),
                ("That broke my rhythm", "negative", "Don't let one miss break anything. Shooters shoot through misses."),
                ("Stay confident in my shot", "helpful", "Confidence is good, but 'get ready for my next shot' shows active shooter mentality."),
            ],
        },
        {
            "id": "miss_3",
            "situation": "You miss two in a row after being hot.",
            "current_thought": "I lost my touch, maybe I'm forcing it",
            "options": [
                ("Shooters shoot - next one's going in", "optimal", "Yes! Shooter's amnesia. Bad misses don't predict future misses."),
                ("I lost my touch", "negative", "Two misses doesn't mean lost touch. Shooters shoot."),
                ("Let someone else shoot for a bit", "negative", "Don't defer when you're a shooter. Stay aggressive."),
                ("Trust my mechanics", "helpful", "Trusting mechanics is good, but 'next one's going in' is pure shooter confidence."),
            ],
        },
        {
            "id": "miss_4",
            "situation": "After a miss, you're open again immediately.",
            "current_thought": "Should I shoot again or look to pass?",
            "options": [
                ("Shoot it without hesitation", "optimal", "Perfect! No hesitation. That's shooter's mentality."),
                ("Pump fake and drive instead", "negative", "Don't lose confidence in your shot. Shooters shoot."),
                ("Look to pass first", "negative", "Open shot for a shooter means shoot. Don't overthink."),
                ("Make sure it's a good look", "helpful", "Open looks ARE good looks for shooters. 'Shoot it' shows true confidence."),
            ],
        },
    ],
}
